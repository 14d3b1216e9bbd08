import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_app_env():
    """Load environment variables from .env file."""
    # Docker images get their environment injected, skip the .env lookup there
    logger.info("Loading environment variables...")
    if os.getenv("RUNNING_IN_DOCKER") == "true":
        logger.info("Skipping `load_app_env`, Docker environment detected.")
        return

    try:
        paths = [".env"]
        for path in paths:
            if os.path.exists(path):
                load_dotenv(path, override=True)
                logger.info(f"✅ Loading .env from: {os.path.abspath(path)}")
                return
        logger.warning("❌ No .env file found")
        load_dotenv(override=True)
        logger.info("Environment variables loaded successfully.")

    except Exception as e:
        logger.error(f"Failed to load environment variables: {e}")
        raise
