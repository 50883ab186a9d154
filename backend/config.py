import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///padel_score.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Comma separated list of origins allowed by CORS and Socket.IO
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173'
    ).split(',') if o.strip()]
    # HTTP port used by run.py
    PORT = int(os.environ.get('PORT', '8080'))
    # None lets Flask-SocketIO pick eventlet/gevent/threading
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE') or None
    # Push state_update events to match rooms after every successful mutation
    BROADCAST_MATCH_UPDATES = os.environ.get('BROADCAST_MATCH_UPDATES', '1') not in ('0', 'false', 'no')
