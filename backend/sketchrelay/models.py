from datetime import datetime, timezone
from enum import IntEnum

from sketchrelay import db


def utcnow():
    # Naive UTC; SQLite drops tzinfo on the way back
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GameState(IntEnum):
    OPEN = 0
    PLAYING = 1
    COMPLETE = 2


class TurnType(IntEnum):
    DRAW = 0
    DESCRIBE = 1
    SKIP = 2


def _iso(value):
    return value.isoformat() if value else None


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.String(128), primary_key=True)
    state = db.Column(db.Integer, nullable=False, default=GameState.OPEN)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    completed_at = db.Column(db.DateTime, nullable=True, index=True)

    players = db.relationship(
        'Player', back_populates='game', cascade='all, delete-orphan',
        order_by=lambda: [Player.order, Player.id],
    )
    threads = db.relationship(
        'Thread', back_populates='game', cascade='all, delete-orphan',
        order_by='Thread.turn_offset',
    )

    @property
    def admin(self):
        return next((p for p in self.players if p.is_admin), None)

    def to_dict(self):
        return {
            'id': self.id,
            'state': int(self.state),
        }


class Player(db.Model):
    __tablename__ = 'player'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'user_id', name='uq_player_game_user'),
        db.UniqueConstraint('game_id', 'order', name='uq_player_game_order'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.String(128), db.ForeignKey('game.id'), nullable=False)
    user_id = db.Column(db.String(255), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    avatar = db.Column(db.String(512), nullable=True)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    left_game = db.Column(db.Boolean, nullable=False, default=False)
    order = db.Column(db.Integer, nullable=True)
    game = db.relationship('Game', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'name': self.name,
            'avatar': self.avatar,
            'isAdmin': self.is_admin,
            'leftGame': self.left_game,
            'order': self.order,
        }


class Thread(db.Model):
    __tablename__ = 'thread'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'turn_offset', name='uq_thread_game_offset'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.String(128), db.ForeignKey('game.id'), nullable=False)
    turn_offset = db.Column(db.Integer, nullable=False)
    # Index of the turn being awaited. Stays at player count - 1 once the last
    # turn lands; check `complete` rather than expecting it to reach the count.
    turn = db.Column(db.Integer, nullable=False, default=0)
    complete = db.Column(db.Boolean, nullable=False, default=False)
    turn_updated_at = db.Column(db.DateTime, nullable=True)
    game = db.relationship('Game', back_populates='threads')
    turns = db.relationship(
        'Turn', back_populates='thread', cascade='all, delete-orphan',
        order_by='Turn.id',
    )

    def awaited_order(self, player_count):
        """Order of the player this thread is waiting on, or None once complete."""
        if self.complete:
            return None
        return (self.turn + self.turn_offset) % player_count

    def to_dict(self):
        return {
            'id': self.id,
            'turn': self.turn,
            'turnOffset': self.turn_offset,
            'complete': self.complete,
            'turnUpdatedAt': _iso(self.turn_updated_at),
        }


class Turn(db.Model):
    __tablename__ = 'turn'
    id = db.Column(db.Integer, primary_key=True)
    thread_id = db.Column(db.Integer, db.ForeignKey('thread.id'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    type = db.Column(db.Integer, nullable=False)
    data = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    thread = db.relationship('Thread', back_populates='turns')
    player = db.relationship('Player')

    def to_dict(self):
        return {
            'id': self.id,
            'playerId': self.player_id,
            'type': int(self.type),
            'data': self.data,
        }
