"""
Dataset preparation and joining operations for the reporting pipeline.
"""
import logging
import traceback
from dataclasses import dataclass
from datetime import datetime, time, timedelta

import pandas as pd

from pizza_sales.transformation.money import to_decimal

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {
    'orders': ['order_id', 'order_date', 'order_time'],
    'order_details': ['order_details_id', 'order_id', 'pizza_id', 'quantity'],
    'pizzas': ['pizza_id', 'pizza_type_id', 'size', 'price'],
    'pizza_types': ['pizza_type_id', 'name', 'category'],
}

OPTIONAL_COLUMNS = {
    'pizza_types': ['ingredients'],
}

# Header names used by the public pizza sales CSV export
COLUMN_ALIASES = {
    'orders': {'date': 'order_date', 'time': 'order_time'},
}

INTEGER_COLUMNS = {
    'orders': ['order_id'],
    'order_details': ['order_details_id', 'order_id', 'quantity'],
}

TEXT_COLUMNS = {
    'order_details': ['pizza_id'],
    'pizzas': ['pizza_id', 'pizza_type_id', 'size'],
    'pizza_types': ['pizza_type_id', 'name', 'category'],
}


@dataclass(frozen=True)
class PizzaDataset:
    """The four normalised source tables every report reads from."""
    orders: pd.DataFrame
    order_details: pd.DataFrame
    pizzas: pd.DataFrame
    pizza_types: pd.DataFrame

    def row_counts(self):
        return {
            'orders': len(self.orders),
            'order_details': len(self.order_details),
            'pizzas': len(self.pizzas),
            'pizza_types': len(self.pizza_types),
        }


def standardize_columns(df, table_name):
    """
    Strip whitespace from column names and apply known header aliases.
    """
    df = df.rename(columns=lambda x: x.strip() if isinstance(x, str) else x)

    aliases = {
        old: new for old, new in COLUMN_ALIASES.get(table_name, {}).items()
        if old in df.columns and new not in df.columns
    }
    if aliases:
        logger.info(f"Renaming columns in '{table_name}': {aliases}")
        df = df.rename(columns=aliases)

    return df


def parse_time_of_day(value):
    """
    Coerce a stored time of day to datetime.time.

    MySQL drivers hand TIME columns back as timedelta, SQLite and CSV as
    strings.
    """
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, timedelta):
        return (datetime.min + value).time()
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        raise ValueError(f"Invalid order time: {value!r}")


def _normalize_table(df, table_name):
    df = standardize_columns(df, table_name)

    missing = [col for col in REQUIRED_COLUMNS[table_name] if col not in df.columns]
    if missing:
        raise ValueError(f"Table '{table_name}' is missing required columns: {missing}")

    columns = REQUIRED_COLUMNS[table_name] + [
        col for col in OPTIONAL_COLUMNS.get(table_name, []) if col in df.columns
    ]
    df = df[columns].copy()

    for col in INTEGER_COLUMNS.get(table_name, []):
        df[col] = pd.to_numeric(df[col]).astype('int64')

    for col in TEXT_COLUMNS.get(table_name, []):
        df[col] = df[col].astype(str).str.strip()

    if table_name == 'orders':
        df['order_date'] = pd.to_datetime(df['order_date']).dt.normalize()
        df['order_time'] = df['order_time'].map(parse_time_of_day).astype(object)
    elif table_name == 'pizzas':
        df['price'] = df['price'].map(to_decimal).astype(object)

    return df.reset_index(drop=True)


def prepare_dataset(orders, order_details, pizzas, pizza_types):
    """
    Normalise the four raw source frames into a PizzaDataset.

    Raw frames may come from CSV files or database tables; they are copied,
    never modified in place.
    """
    try:
        logger.info("Preparing dataset from source tables")

        dataset = PizzaDataset(
            orders=_normalize_table(orders, 'orders'),
            order_details=_normalize_table(order_details, 'order_details'),
            pizzas=_normalize_table(pizzas, 'pizzas'),
            pizza_types=_normalize_table(pizza_types, 'pizza_types'),
        )

        logger.info(f"Prepared dataset with row counts {dataset.row_counts()}")
        return dataset
    except Exception as e:
        logger.error(f"Error preparing dataset: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def join_priced_lines(dataset):
    """
    Join order lines to the pizza catalog and compute line revenue.

    Inner join: lines referencing an unknown pizza drop out. Line order is
    preserved, which is what report tie-breaks rely on.
    """
    lines = dataset.order_details[['order_details_id', 'order_id', 'pizza_id', 'quantity']].merge(
        dataset.pizzas[['pizza_id', 'pizza_type_id', 'size', 'price']],
        on='pizza_id',
        how='inner'
    )

    lines['line_revenue'] = pd.Series(
        [int(quantity) * price for quantity, price in zip(lines['quantity'], lines['price'])],
        index=lines.index,
        dtype=object
    )
    return lines


def join_catalog_lines(dataset):
    """Priced lines joined further to pizza types (name and category)."""
    lines = join_priced_lines(dataset).merge(
        dataset.pizza_types[['pizza_type_id', 'name', 'category']],
        on='pizza_type_id',
        how='inner'
    )
    return lines.rename(columns={'name': 'pizza_name'})


def join_dated_lines(dataset, priced=False):
    """
    Order lines joined to their order's date.

    With priced=True the lines carry price and line revenue as well.
    """
    if priced:
        lines = join_priced_lines(dataset)
    else:
        lines = dataset.order_details[['order_details_id', 'order_id', 'pizza_id', 'quantity']]

    return dataset.orders[['order_id', 'order_date']].merge(lines, on='order_id', how='inner')
