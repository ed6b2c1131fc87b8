import logging

from roomrelay import socketio

logger = logging.getLogger(__name__)


def schedule_later(delay: float, fn, *args) -> None:
    """Run ``fn(*args)`` once, ``delay`` seconds from now, on a background task.

    There is no cancel; the callback re-checks state when it fires.
    """

    def _runner(sleep_for: float):
        if sleep_for > 0:
            socketio.sleep(sleep_for)
        try:
            fn(*args)
        except Exception:
            logger.exception(f"[timer-error] {getattr(fn, '__name__', fn)} args={args}")

    socketio.start_background_task(_runner, max(0.0, float(delay)))


def start_sweeper(app, registry) -> bool:
    """Start the periodic expiry sweep for ``registry``.

    - No-ops in TESTING mode unless ENABLE_SWEEPER_IN_TESTS is set
    - At most one sweeper per app
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SWEEPER_IN_TESTS'):
        return False
    state = app.extensions.setdefault('room_sweeper', {})
    if state.get('started'):
        return False
    state['started'] = True

    interval = float(app.config.get('ROOM_SWEEP_INTERVAL_SEC', 300))
    app.logger.info(f"[sweeper-start] interval={interval}s")

    def _worker():
        while True:
            socketio.sleep(interval)
            try:
                removed = registry.sweep_expired()
                app.logger.info(f"[sweeper-tick] removed={len(removed)} live={len(registry)}")
            except Exception:
                app.logger.exception('[sweeper-error] sweep failed')

    socketio.start_background_task(_worker)
    return True
