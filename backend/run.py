"""Serve the exercise tracker API with Uvicorn.

Host and port come from the `HOST` and `PORT` environment variables
(defaults `0.0.0.0` and `3000`).

Usage:
    python run.py
"""
import logging
from uvicorn import Config, Server

from exercise_tracker.config import settings
from exercise_tracker.main import app


def main() -> None:
    """Start the API server and block until it stops."""
    logging.basicConfig(level=settings.LOG_LEVEL)
    config = Config(app=app, host=settings.HOST, port=settings.PORT, reload=False, log_level=settings.LOG_LEVEL.lower())
    server = Server(config)
    logging.getLogger("exercise_tracker").info("Your app is listening on %s:%d", settings.HOST, settings.PORT)
    server.run()


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
