"""
Database connection handling for the pizza sales reporting pipeline.
"""
import os
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from pizza_sales.config import Config

logger = logging.getLogger(__name__)


def build_connection_string(db_config):
    db_type = (db_config.get('type') or '').lower()

    if db_type == 'sqlite':
        name = db_config.get('name') or ':memory:'
        if name == ':memory:':
            return "sqlite://"
        return f"sqlite:///{name}"
    elif db_type in ('postgres', 'postgresql'):
        return f"postgresql+psycopg2://{db_config['user']}:{db_config['password']}@{db_config['host']}:{db_config['port']}/{db_config['name']}"
    elif db_type == 'mysql':
        return f"mysql+pymysql://{db_config['user']}:{db_config['password']}@{db_config['host']}:{db_config['port']}/{db_config['name']}"

    raise ValueError(f"Unsupported database type: {db_config.get('type')}")


def create_db_engine(config=None):
    """
    Create a SQLAlchemy engine from the [DATABASE] settings.
    """
    try:
        if config is None:
            config = Config()

        db_config = config.get_database_config()
        connection_string = build_connection_string(db_config)

        # SQLite will not create the database's parent directory itself
        if connection_string.startswith('sqlite:///'):
            db_dir = os.path.dirname(db_config['name'])
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir)

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
    Initialize database tables.
    """
    base.metadata.create_all(engine)
    logger.info("Database tables initialized")
