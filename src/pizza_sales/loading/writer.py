"""
Data loading components for the pizza sales reporting pipeline.
"""
import os
import logging
import traceback
from decimal import Decimal

import pandas as pd
from psycopg2.extras import execute_batch
from sqlalchemy import Numeric

logger = logging.getLogger(__name__)

REPORT_TABLE_PREFIX = 'report_'


def _to_records(df):
    """
    Convert a DataFrame to insertable row dicts of plain Python values.
    """
    frame = df.copy()
    for col in frame.columns:
        if pd.api.types.is_datetime64_any_dtype(frame[col]):
            frame[col] = frame[col].dt.date
    frame = frame.astype(object).where(frame.notna(), None)
    return frame.to_dict(orient='records')


def bulk_insert(connection, table, df, page_size=100):
    """
    Insert DataFrame rows into an existing table inside the caller's transaction.

    PostgreSQL goes through psycopg2's execute_batch on the underlying DBAPI
    connection; other dialects use a SQLAlchemy executemany. Nothing is
    committed here.

    Args:
        connection: SQLAlchemy Connection with an open transaction
        table: SQLAlchemy Table to insert into
        df (pd.DataFrame): Rows to insert

    Returns:
        int: Number of rows inserted
    """
    if df is None or len(df) == 0:
        logger.warning(f"No rows to insert into {table.name}")
        return 0

    columns = [col.name for col in table.columns if col.name in df.columns]
    records = _to_records(df[columns])

    if connection.dialect.name == 'postgresql':
        cursor = connection.connection.cursor()
        try:
            placeholders = ', '.join(['%s'] * len(columns))
            insert_sql = f"INSERT INTO {table.name} ({', '.join(columns)}) VALUES ({placeholders})"
            rows = [tuple(record[col] for col in columns) for record in records]
            execute_batch(cursor, insert_sql, rows, page_size=page_size)
        finally:
            cursor.close()
    else:
        connection.execute(table.insert(), records)

    logger.info(f"Inserted {len(records)} rows into {table.name}")
    return len(records)


def _sql_types(df):
    """Map Decimal columns to NUMERIC so money is not stored as text."""
    dtypes = {}
    for col in df.columns:
        non_null = df[col].dropna()
        if len(non_null) > 0 and isinstance(non_null.iloc[0], Decimal):
            dtypes[col] = Numeric(14, 2)
    return dtypes


def write_reports(engine, reports, prefix=REPORT_TABLE_PREFIX):
    """
    Write each report to its own table, replacing the previous run's rows.

    Args:
        engine: SQLAlchemy engine
        reports (dict): Report name to DataFrame
        prefix (str): Table name prefix

    Returns:
        dict: Report name to table name
    """
    try:
        logger.info(f"Writing {len(reports)} report tables")

        written = {}
        for name, df in reports.items():
            table_name = f"{prefix}{name}"
            if len(df) == 0:
                logger.warning(f"Report {name} is empty, writing an empty table {table_name}")

            df.to_sql(
                table_name,
                engine,
                if_exists='replace',
                index=False,
                dtype=_sql_types(df)
            )
            written[name] = table_name
            logger.info(f"Wrote {len(df)} rows to {table_name}")

        return written
    except Exception as e:
        logger.error(f"Error writing report tables: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def export_results_to_csv(reports, output_dir):
    """
    Export report DataFrames to CSV files, one per non-empty report.
    """
    try:
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)

        exported_files = {}

        for name, df in reports.items():
            if df is not None and len(df) > 0:
                file_path = os.path.join(output_dir, f"{name}.csv")
                df.to_csv(file_path, index=False)
                exported_files[name] = file_path
                logger.info(f"Exported {len(df)} rows to {file_path}")

        return exported_files
    except Exception as e:
        logger.error(f"Error exporting results to CSV: {str(e)}")
        logger.error(traceback.format_exc())
        raise
