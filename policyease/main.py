from policyease.app import create_app
from policyease.core.environment import load_app_env
from policyease.core.logging import setup_logging

# Set up logging configuration
setup_logging()

load_app_env()

app = create_app()
