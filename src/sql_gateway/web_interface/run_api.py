# src/sql_gateway/web_interface/run_api.py
import uvicorn
import logging

from sql_gateway.config.logging_config import LoggingConfig
from sql_gateway.config.sql_config import SqlApiConfig

# Configure logging
logging_config = LoggingConfig()
logging_config.configure()
logger = logging.getLogger(__name__)


def run_api():
    """Run the FastAPI application."""
    logger.info("Starting SQL Gateway API")

    port = SqlApiConfig().api_port

    # Run API
    uvicorn.run(
        "sql_gateway.web_interface.app:app",
        host="0.0.0.0",
        port=port
    )


if __name__ == "__main__":
    run_api()
