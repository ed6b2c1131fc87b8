import time

from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def status():
    registry = current_app.extensions['rooms']
    started_at = current_app.extensions.get('started_at', time.time())
    return jsonify({
        'status': 'ok',
        'rooms': len(registry),
        'uptime': time.time() - started_at,
    })
