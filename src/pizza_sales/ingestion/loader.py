"""
Data ingestion components for the pizza sales reporting pipeline.
"""
import os
import logging
import traceback

import pandas as pd
from sqlalchemy import delete

from pizza_sales.db.engine import create_session
from pizza_sales.db.models import SOURCE_TABLES
from pizza_sales.loading.writer import bulk_insert
from pizza_sales.transformation.joins import standardize_columns

logger = logging.getLogger(__name__)

SOURCE_FILES = {
    'orders': 'orders.csv',
    'order_details': 'order_details.csv',
    'pizzas': 'pizzas.csv',
    'pizza_types': 'pizza_types.csv',
}


def read_source_csv(file_path, table_name, encoding='utf-8'):
    """
    Read one source CSV file into a DataFrame with standardized column names.
    """
    logger.info(f"Loading data from {file_path}")

    df = pd.read_csv(file_path, dtype=str, encoding=encoding)
    df = standardize_columns(df, table_name)

    logger.info(f"Loaded {len(df)} rows from {file_path}")

    missing_values = int(df.isnull().sum().sum())
    if missing_values > 0:
        logger.warning(f"Found {missing_values} missing values in {file_path}")

    return df


def load_source_data(config):
    """
    Load all four source CSV files.

    Args:
        config: Configuration object

    Returns:
        dict: Table name to raw DataFrame
    """
    try:
        paths = {
            table: config.get_input_path(filename)
            for table, filename in SOURCE_FILES.items()
        }

        missing_files = [path for path in paths.values() if not os.path.exists(path)]
        if missing_files:
            raise FileNotFoundError(
                f"Required CSV files missing in {config.get_input_path()}: {', '.join(missing_files)}"
            )

        encoding = config.get_input_encoding()
        return {
            table: read_source_csv(path, table, encoding)
            for table, path in paths.items()
        }
    except Exception as e:
        logger.error(f"Failed to load source data: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def load_source_tables(engine):
    """
    Read the four source tables from the database.

    Returns:
        dict: Table name to raw DataFrame
    """
    try:
        data = {}
        for table_name in SOURCE_FILES:
            data[table_name] = standardize_columns(pd.read_sql_table(table_name, engine), table_name)
            logger.info(f"Read {len(data[table_name])} rows from table {table_name}")
        return data
    except Exception as e:
        logger.error(f"Failed to read source tables: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def stage_source_data(engine, dataset):
    """
    Replace the contents of the source tables with a prepared dataset.

    The deletes and inserts share one transaction, so a failed insert leaves
    the previously staged rows in place.

    Args:
        engine: SQLAlchemy engine
        dataset (PizzaDataset): Normalised source tables

    Returns:
        dict: Table name to number of rows staged
    """
    session = create_session(engine)
    try:
        logger.info("Staging source tables into the database")

        # Children first so foreign keys never dangle
        for table_name, model in reversed(list(SOURCE_TABLES.items())):
            session.execute(delete(model))
            logger.info(f"Cleared table {table_name}")

        connection = session.connection()
        staged = {}
        for table_name, model in SOURCE_TABLES.items():
            staged[table_name] = bulk_insert(connection, model.__table__, getattr(dataset, table_name))

        session.commit()
        logger.info(f"Staged source tables: {staged}")
        return staged
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to stage source data: {str(e)}")
        logger.error(traceback.format_exc())
        raise
    finally:
        session.close()
