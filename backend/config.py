import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3001'))
    # Comma separated list; '*' accepts any origin (LAN play)
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Engine.IO heartbeat (seconds)
    SOCKETIO_PING_INTERVAL = int(os.environ.get('SOCKETIO_PING_INTERVAL', '10'))
    SOCKETIO_PING_TIMEOUT = int(os.environ.get('SOCKETIO_PING_TIMEOUT', '30'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    # Time a vacated room waits for a reconnect before it is dropped (seconds)
    ROOM_GRACE_PERIOD_SEC = float(os.environ.get('ROOM_GRACE_PERIOD_SEC', '60'))
    # Absolute room lifetime (seconds)
    ROOM_MAX_AGE_SEC = float(os.environ.get('ROOM_MAX_AGE_SEC', str(2 * 60 * 60)))
    # Backstop sweep period (seconds)
    ROOM_SWEEP_INTERVAL_SEC = float(os.environ.get('ROOM_SWEEP_INTERVAL_SEC', str(5 * 60)))


def parse_origins(value):
    """Turn the CORS_ORIGINS setting into what Flask-CORS / Socket.IO expect."""
    if isinstance(value, (list, tuple)):
        return list(value)
    value = (value or '').strip()
    if not value or value == '*':
        return '*'
    return [o.strip() for o in value.split(',') if o.strip()]
