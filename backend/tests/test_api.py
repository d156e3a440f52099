import base64
import json

import pytest

from sketchrelay.models import GameState, TurnType


def drawing():
    raw = b''.join(v.to_bytes(2, 'little', signed=True) for v in (5, 5, 50, 50, -32768))
    return json.dumps({'width': 320, 'height': 240, 'data': base64.b64encode(raw).decode()})


@pytest.fixture()
def players(login):
    return [login(f'user-{i}', name) for i, name in enumerate(['Alice', 'Bob', 'Cara', 'Dan'])]


def create(client, **body):
    res = client.post('/api/games/create', json=body)
    assert res.status_code == 201
    return res.get_json()['game_id']


def state(client, game_id):
    res = client.get(f'/api/games/{game_id}/state')
    assert res.status_code == 200
    return res.get_json()


def started_game(players):
    game_id = create(players[0], name='Alice')
    for p in players[1:]:
        assert p.post(f'/api/games/{game_id}/join', json={}).status_code == 200
    assert players[0].post(f'/api/games/{game_id}/start', json={}).status_code == 200
    return game_id


def test_login_required(client):
    res = client.post('/api/games/create', json={})
    assert res.status_code == 401
    assert res.get_json() == {'error': 'Login required'}


def test_login_and_me(login):
    alice = login('user-0', 'Alice')
    me = alice.get('/auth/me').get_json()
    assert me['user'] == {'id': 'user-0', 'name': 'Alice', 'picture': None}
    assert alice.post('/auth/logout').status_code == 200
    assert alice.get('/auth/me').status_code == 401


def test_each_client_keeps_its_own_login(players):
    ids = [p.get('/auth/me').get_json()['user']['id'] for p in players]
    assert ids == ['user-0', 'user-1', 'user-2', 'user-3']
    game_id = create(players[0])
    roster = [p['userId'] for p in state(players[3], game_id)['game']['players']]
    assert roster == ['user-0']


def test_dev_login_generates_identity(client):
    user = client.post('/auth/login', json={}).get_json()['user']
    assert user['id']
    assert len(user['name'].split('-')) == 2


def test_create_join_and_state(players):
    game_id = create(players[0], name='Alice', hide_avatar='on')
    res = players[1].post(f'/api/games/{game_id}/join', data={'name': 'Bobby'})
    assert res.status_code == 200
    view = state(players[1], game_id)
    assert view['game']['id'] == game_id
    assert view['game']['state'] == GameState.OPEN
    roster = {p['userId']: p for p in view['game']['players']}
    assert roster['user-0']['isAdmin'] is True
    assert roster['user-1']['name'] == 'Bobby'
    assert roster['user-1']['order'] is None


def test_state_of_missing_game(client):
    res = client.get('/api/games/nope/state?json=1')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Game not found'}


def test_errors_as_plain_text_for_forms(players):
    game_id = create(players[0])
    res = players[1].post(f'/api/games/{game_id}/start', data={})
    assert res.status_code == 403
    assert res.mimetype == 'text/plain'
    assert b'Only the admin' in res.data


def test_errors_as_json_when_asked(players):
    game_id = create(players[0])
    res = players[0].post(f'/api/games/{game_id}/start?json=1', data={})
    assert res.status_code == 403
    assert 'At least 4 players' in res.get_json()['error']


def test_start_and_play_over_http(players):
    game_id = started_game(players)
    views = [state(p, game_id) for p in players]
    assert all(v['game']['state'] == GameState.PLAYING for v in views)
    assert len(views[0]['game']['threads']) == 4
    # Every player starts with their own thread and nothing to respond to
    for view in views:
        assert view['inPlayThread']['turn'] == 0
        assert 'lastTurnInThread' not in view

    for player, view in zip(players, views):
        res = player.post(f'/api/games/{game_id}/play',
                          data={'thread': view['inPlayThread']['id'], 'data': 'a cat'})
        assert res.status_code == 200

    for player in players:
        view = state(player, game_id)
        assert view['lastTurnInThread']['type'] == TurnType.DESCRIBE
        assert view['lastTurnInThread']['data'] == 'a cat'
        res = player.post(f'/api/games/{game_id}/play?json=1',
                          data={'thread': view['inPlayThread']['id'], 'data': 'not a drawing'})
        assert res.status_code == 400
        res = player.post(f'/api/games/{game_id}/play',
                          data={'thread': view['inPlayThread']['id'], 'data': drawing()})
        assert res.status_code == 200


def test_play_wrong_thread(players):
    game_id = started_game(players)
    mine = state(players[0], game_id)['inPlayThread']['id']
    other = state(players[1], game_id)['inPlayThread']['id']
    res = players[0].post(f'/api/games/{game_id}/play?json=1', data={'thread': other, 'data': 'x'})
    assert res.status_code == 403
    res = players[0].post(f'/api/games/{game_id}/play?json=1', data={'thread': 'abc', 'data': 'x'})
    assert res.status_code == 404
    assert players[0].post(f'/api/games/{game_id}/play', data={'thread': mine, 'data': 'x'}).status_code == 200


def test_full_game_reveals_all_turns(players):
    game_id = started_game(players)
    for round_no in range(4):
        for player in players:
            view = state(player, game_id)
            data = drawing() if round_no % 2 else f'round {round_no}'
            res = player.post(f'/api/games/{game_id}/play',
                              data={'thread': view['inPlayThread']['id'], 'data': data})
            assert res.status_code == 200

    final = state(players[0], game_id)
    assert final['game']['state'] == GameState.COMPLETE
    for thread in final['game']['threads']:
        assert thread['complete'] is True
        assert [t['type'] for t in thread['turns']] == [1, 0, 1, 0]


def test_leave_and_admin_remove(players, login):
    game_id = create(players[0])
    for p in players[1:]:
        p.post(f'/api/games/{game_id}/join')
    assert players[3].post(f'/api/games/{game_id}/leave').status_code == 200
    res = players[1].post(f'/api/games/{game_id}/leave?json=1', json={'user_id': 'user-2'})
    assert res.status_code == 403
    res = players[0].post(f'/api/games/{game_id}/leave', json={'user_id': 'user-2'})
    assert res.status_code == 200
    roster = [p['userId'] for p in state(players[0], game_id)['game']['players']]
    assert roster == ['user-0', 'user-1']


def test_leave_mid_game_over_http(players):
    game_id = started_game(players)
    waiting_thread = state(players[2], game_id)['inPlayThread']['id']
    assert players[2].post(f'/api/games/{game_id}/leave').status_code == 200
    view = state(players[2], game_id)
    assert 'inPlayThread' not in view
    thread = next(t for t in view['game']['threads'] if t['id'] == waiting_thread)
    assert thread['turn'] == 1
    assert thread['turnUpdatedAt'] is not None
    leaver = next(p for p in view['game']['players'] if p['userId'] == 'user-2')
    assert leaver['leftGame'] is True


def test_cancel(players):
    game_id = create(players[0])
    players[1].post(f'/api/games/{game_id}/join')
    assert players[1].post(f'/api/games/{game_id}/cancel').status_code == 403
    assert players[0].post(f'/api/games/{game_id}/cancel').status_code == 200
    assert players[0].get(f'/api/games/{game_id}/state').status_code == 404


def test_my_games(players):
    game_id = started_game(players)
    other = create(players[1])
    listed = players[1].get('/api/games/mine').get_json()
    assert {g['game']['id'] for g in listed} == {game_id, other}
    waiting = {g['game']['id']: g['waitingOnPlayer'] for g in listed}
    assert waiting == {game_id: True, other: False}


def test_join_started_game_forbidden(players, login):
    game_id = started_game(players)
    late = login('user-9', 'Late')
    res = late.post(f'/api/games/{game_id}/join?json=1')
    assert res.status_code == 403
