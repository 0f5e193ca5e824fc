# run.py - CompsMVP launcher
import os
import logging

from CompsMVP.app import create_app
from CompsMVP.services.wiring import get_scheduler

logger = logging.getLogger("CompsMVP.run")


def start_server():
    app = create_app()

    # Render requires binding to the PORT environment variable
    port = int(os.environ.get("PORT", 5050))

    if app.config.get("ENABLE_SCHEDULER"):
        with app.app_context():
            get_scheduler().start_all()
        logger.info("Background sync jobs started")

    logger.info("Starting CompsMVP Flask server on port %s...", port)
    try:
        app.run(host="0.0.0.0", port=port, debug=False, threaded=True)
    finally:
        with app.app_context():
            get_scheduler().stop_all_jobs()
        logger.info("CompsMVP service stopped.")


if __name__ == "__main__":
    start_server()
