"""
Database connection handling for the reporting library.
"""
import logging
from urllib.parse import quote_plus
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from truck_reporting.config import Config

logger = logging.getLogger(__name__)


def build_connection_string(db_config):
    """
    Build a SQLAlchemy URL from the connection settings returned by
    Config.get_database_config().
    """
    db_type = db_config['type']
    user = quote_plus(db_config.get('user') or '')
    password = quote_plus(db_config.get('password') or '')

    if db_type == 'sqlite':
        name = db_config.get('name') or ':memory:'
        return f"sqlite:///{name}"
    elif db_type in ('postgres', 'postgresql'):
        return f"postgresql://{user}:{password}@{db_config['host']}:{db_config['port']}/{db_config['name']}"
    elif db_type == 'mysql':
        return f"mysql+pymysql://{user}:{password}@{db_config['host']}:{db_config['port']}/{db_config['name']}"
    elif db_type == 'snowflake':
        # The host setting carries the Snowflake account identifier
        connection_string = f"snowflake://{user}:{password}@{db_config['host']}/{db_config['name']}"
        if db_config.get('schema'):
            connection_string += f"/{db_config['schema']}"
        options = []
        if db_config.get('warehouse'):
            options.append(f"warehouse={quote_plus(db_config['warehouse'])}")
        if db_config.get('role'):
            options.append(f"role={quote_plus(db_config['role'])}")
        if options:
            connection_string += "?" + "&".join(options)
        return connection_string

    raise ValueError(f"Unsupported database type: {db_type}")


def create_db_engine(config=None):
    """
    Create an engine bound to the connection settings in config.
    """
    try:
        if config is None:
            config = Config()

        db_config = config.get_database_config()
        connection_string = build_connection_string(db_config)

        engine = create_engine(connection_string)
        logger.info(f"Database connection created for {db_config['type']}")
        return engine
    except Exception as e:
        logger.error(f"Failed to create database connection: {str(e)}")
        raise


def create_session(engine):
    """
    Create a SQLAlchemy session for the engine.
    """
    Session = sessionmaker(bind=engine)
    return Session()


def init_db(engine, base):
    """
    Create the source tables. Only used for local fixtures; the production
    relations are owned by the upstream platform.
    """
    base.metadata.create_all(engine)
    logger.info("Database tables initialized")
