import config
from quart import Quart
from dotenv import load_dotenv

load_dotenv(override=True)

from routers import api_blueprint
from database import initialize_database
from services.search_engine import get_search_engine
from utils.logging_config import setup_logging, get_logger


def create_app():
    """Create and configure the Quart application."""
    # Initialize logging first
    setup_logging(level=config.LOG_LEVEL)
    logger = get_logger('App')
    logger.info(f"Initializing {config.APP_NAME}...")

    app = Quart(__name__)
    app.config['RELOAD_SECRET'] = config.RELOAD_SECRET

    # Ensure the database file and tables exist
    initialize_database()

    # Build the engine now so invalidation callbacks are registered before
    # the first request
    get_search_engine()

    app.register_blueprint(api_blueprint, url_prefix='/api')

    return app


if __name__ == '__main__':
    import uvicorn
    app = create_app()
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level="info")
