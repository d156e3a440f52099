import uuid

from flask import Blueprint, current_app, jsonify, request, session
from flask_login import UserMixin, current_user, login_required, login_user, logout_user

from sketchrelay import login_manager
from sketchrelay.services.games.names import create_fake_login_name

auth = Blueprint('auth', __name__)

_SESSION_KEY = 'user'


class UserSession(UserMixin):
    """Identity handed over by the login provider: a stable id, a name and maybe a picture."""

    def __init__(self, id, name, picture=None):
        self.id = id
        self.name = name
        self.picture = picture

    def get_id(self):
        return self.id

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'picture': self.picture}


@login_manager.user_loader
def load_user(user_id):
    data = session.get(_SESSION_KEY)
    if not data or data.get('id') != user_id:
        return None
    return UserSession(**data)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Login required'}), 401


@auth.route('/login', methods=['POST'])
def login():
    """Development login: a generated identity standing in for the OAuth provider."""
    if not current_app.config.get('DEV_LOGIN'):
        return jsonify({'error': 'Login provider not configured'}), 404
    data = request.get_json(silent=True) or request.form
    user = UserSession(
        id=data.get('id') or uuid.uuid4().hex,
        name=data.get('name') or create_fake_login_name(),
        picture=data.get('picture') or None,
    )
    session[_SESSION_KEY] = user.to_dict()
    login_user(user)
    return jsonify({'success': True, 'user': user.to_dict()})


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    session.pop(_SESSION_KEY, None)
    return jsonify({'success': True})


@auth.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({'success': True, 'user': current_user.to_dict()})
