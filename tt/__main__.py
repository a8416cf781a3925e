import sys
from tt.common.logger import log
from tt.core import config
from tt.core.session import TrackingSession
from tt.core.storage import TimerStore
from tt.ui.app import TimerApp

# Builds the store and session from settings, restores what was saved last time and hands over to the UI.
def main():
    settings = config.load_settings()
    store = TimerStore(config.database_path(settings)).open()
    try:
        session = TrackingSession(store, date_headers=settings["date_headers"])
        session.restore()
        TimerApp(session, settings).run()
    finally:
        store.close()

# Entry point for `python -m tt`
def run() -> None:
    try:
        main()
    except SystemExit:
        raise
    except Exception:
        # Full stack trace, always
        log.exception("Uncaught exception in entrypoint, exiting")
        sys.exit(1)

if __name__ == "__main__":
    run()
