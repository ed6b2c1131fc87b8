import time

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config, parse_origins

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = parse_origins(flask_app.config.get('CORS_ORIGINS', '*'))
    CORS(flask_app, origins=origins)

    socketio.init_app(
        flask_app,
        cors_allowed_origins=origins,
        ping_interval=flask_app.config.get('SOCKETIO_PING_INTERVAL', 10),
        ping_timeout=flask_app.config.get('SOCKETIO_PING_TIMEOUT', 30),
    )

    # One registry per app; handlers reach it through app.extensions
    from roomrelay.services.rooms import RoomRegistry, generate_room_code
    from roomrelay.services.rooms.scheduler import schedule_later, start_sweeper

    code_length = int(flask_app.config.get('ROOM_CODE_LENGTH', 6))
    registry = RoomRegistry(
        code_generator=lambda: generate_room_code(code_length),
        grace_period=float(flask_app.config.get('ROOM_GRACE_PERIOD_SEC', 60)),
        max_age=float(flask_app.config.get('ROOM_MAX_AGE_SEC', 2 * 60 * 60)),
        schedule=schedule_later,
    )
    flask_app.extensions['rooms'] = registry
    flask_app.extensions['started_at'] = time.time()

    from roomrelay.main import main
    flask_app.register_blueprint(main)

    from roomrelay.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    start_sweeper(flask_app, registry)

    return flask_app
