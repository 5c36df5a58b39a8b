# teiedit/__init__.py
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from .config import TEIConfig, config
from .schema.attributes import get_element_attributes
from .schema.compiler import compile_schema
from .schema.schema_manager import SchemaManager
from .schema.utils.logger import SchemaLogger
from .schema.validators import get_required_children, validate_document

__all__ = [
    'compile_schema',
    'create_app',
    'get_element_attributes',
    'get_required_children',
    'validate_document',
]


def create_app(config_name: Optional[str] = None, schema_manager: Optional[SchemaManager] = None) -> Flask:
    """
    Application factory for the schema API.

    Args:
        config_name: Key into ``config``; defaults to $FLASK_ENV or development
        schema_manager: Prepared manager; one is built from the environment otherwise
    """
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    tei_config = TEIConfig.from_environment()
    logger = SchemaLogger(
        name=__name__,
        level=tei_config.logging.level,
        log_file=tei_config.logging.log_file,
    )

    try:
        app = Flask(__name__)
        app.config.from_object(config[config_name])

        app.config.update(
            TEI_CONFIG=tei_config,
            LOGGER=logger,
            SCHEMA_MANAGER=schema_manager or SchemaManager(tei_config.schema, logger),
        )

        CORS(app, resources={
            r"/api/*": {
                "origins": app.config.get('CORS_ORIGINS', '*'),
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization"],
            }
        })

        from .routes import init_app as init_routes
        init_routes(app)
        logger.info("Successfully registered routes blueprint")

        return app

    except Exception as e:
        logger.error(f"Application initialization failed: {str(e)}")
        raise
