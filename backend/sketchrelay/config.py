import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///sketchrelay.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Origins allowed to talk to the API and the socket (comma separated)
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', 'http://localhost:8081').split(',') if o.strip()]
    # Fake logins with generated names; stands in for the OAuth provider in dev
    DEV_LOGIN = os.environ.get('DEV_LOGIN', '1') == '1'
    # Minimum players before the admin may start
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '4'))
    # Non-complete games a single user may administer at once
    MAX_OPEN_GAMES_PER_USER = int(os.environ.get('MAX_OPEN_GAMES_PER_USER', '10'))
    # Max length of a subject or drawing description
    MAX_DESCRIPTION_LENGTH = int(os.environ.get('MAX_DESCRIPTION_LENGTH', '100'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '40'))
    # Max drawing dimension, either axis
    MAX_IMG_SIZE = int(os.environ.get('MAX_IMG_SIZE', '6000'))
    MAX_DRAWING_BYTES = int(os.environ.get('MAX_DRAWING_BYTES', str(512 * 1024)))
    # Keepalive probe interval for sockets (sec). A peer missing one probe is dropped.
    SOCKETIO_PING_INTERVAL = int(os.environ.get('SOCKETIO_PING_INTERVAL', '30'))
