"""Start the RSVP Collector HTTP server.

Host, port and log level come from the environment (``HOST``, ``PORT``,
``LOG_LEVEL``); see ``rsvp_collector.app.core.config`` for every
supported variable.

Usage:
    python run.py
"""

from uvicorn import Config, Server

from rsvp_collector.app.core.config import settings
from rsvp_collector.app.main import app


def main() -> None:
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        # Logging is configured by create_app; keep uvicorn from replacing it.
        log_config=None,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    server.run()


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
