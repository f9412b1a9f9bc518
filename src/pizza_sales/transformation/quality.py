"""
Data quality checks for the pizza sales source tables.

Checks run on the raw frames, before normalisation, so they can report
problems that would otherwise make dataset preparation fail.
"""
import logging
import traceback

import numpy as np
import pandas as pd

from pizza_sales.transformation.joins import REQUIRED_COLUMNS
from pizza_sales.transformation.money import to_decimal

logger = logging.getLogger(__name__)

PRIMARY_KEYS = {
    'orders': ['order_id'],
    'order_details': ['order_details_id'],
    'pizzas': ['pizza_id'],
    'pizza_types': ['pizza_type_id'],
}

# Lower bounds per numeric column; values below the bound are invalid
VALUE_RANGES = {
    'order_details': {'quantity': 1},
    'pizzas': {'price': 0},
}

FOREIGN_KEYS = [
    {'table': 'order_details', 'key': 'order_id', 'ref_table': 'orders', 'ref_key': 'order_id'},
    {'table': 'order_details', 'key': 'pizza_id', 'ref_table': 'pizzas', 'ref_key': 'pizza_id'},
    {'table': 'pizzas', 'key': 'pizza_type_id', 'ref_table': 'pizza_types', 'ref_key': 'pizza_type_id'},
]


def _key_strings(series):
    """Key values as trimmed strings so '1', 1 and 1.0 match across sources."""
    values = series.dropna()
    if pd.api.types.is_float_dtype(values) and (values % 1 == 0).all():
        values = values.astype('int64')
    return values.astype(str).str.strip()


def _key_values(series):
    return set(_key_strings(series))


def _relationship_name(fk):
    return f"{fk['table']}.{fk['key']} -> {fk['ref_table']}.{fk['ref_key']}"


def run_data_quality_checks(data_frames):
    """
    Run a series of data quality checks on the raw source frames.
    """
    try:
        logger.info("Running data quality checks")

        quality_results = {
            'missing_values': check_missing_values(data_frames),
            'duplicate_keys': check_duplicate_keys(data_frames),
            'value_ranges': check_value_ranges(data_frames),
            'referential_integrity': check_referential_integrity(data_frames),
        }

        if has_quality_issues(quality_results):
            logger.warning(f"Found {count_quality_issues(quality_results)} data quality issues")
        else:
            logger.info("All data quality checks passed")

        return quality_results
    except Exception as e:
        logger.error(f"Error running data quality checks: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def check_missing_values(data_frames):
    """
    Check for missing values in each DataFrame.
    """
    results = {}

    for table_name, df in data_frames.items():
        missing_by_column = df.isnull().sum()
        total_missing = int(missing_by_column.sum())

        missing_columns = {
            col: int(count) for col, count in missing_by_column[missing_by_column > 0].items()
        }

        results[table_name] = {
            'total_missing': total_missing,
            'missing_columns': missing_columns
        }

        if total_missing > 0:
            logger.warning(f"Table '{table_name}' has {total_missing} missing values")
            for col, count in missing_columns.items():
                logger.warning(f"  - Column '{col}': {count} missing values")

    return results


def check_duplicate_keys(data_frames):
    """
    Check for duplicate primary keys in each DataFrame.
    """
    results = {}

    for table_name, df in data_frames.items():
        pk_columns = PRIMARY_KEYS.get(table_name)
        if pk_columns is None:
            continue

        if not all(col in df.columns for col in pk_columns):
            results[table_name] = {
                'duplicate_count': 0,
                'error': f"Not all primary key columns {pk_columns} exist in table"
            }
            continue

        duplicates = df[df.duplicated(subset=pk_columns, keep=False)]
        duplicate_count = len(duplicates)

        results[table_name] = {
            'duplicate_count': duplicate_count,
            'duplicate_keys': duplicates[pk_columns].head(10).values.tolist() if duplicate_count > 0 else []
        }

        if duplicate_count > 0:
            logger.warning(f"Table '{table_name}' has {duplicate_count} duplicate primary keys")

    return results


def check_value_ranges(data_frames):
    """
    Check for values below their allowed minimum.

    Non-numeric values count as invalid.
    """
    results = {}

    for table_name, bounds in VALUE_RANGES.items():
        if table_name not in data_frames:
            continue

        df = data_frames[table_name]
        table_results = {}

        for column, minimum in bounds.items():
            if column not in df.columns:
                table_results[column] = {'error': f"Column '{column}' not found in table"}
                continue

            values = pd.to_numeric(df[column], errors='coerce')
            invalid_mask = (values < minimum) | (values.isna() & df[column].notna())
            invalid_count = int(np.count_nonzero(invalid_mask))

            table_results[column] = {
                'invalid_count': invalid_count,
                'invalid_examples': df.loc[invalid_mask, column].head(5).tolist() if invalid_count > 0 else []
            }

            if invalid_count > 0:
                logger.warning(f"Table '{table_name}' has {invalid_count} invalid values in column '{column}'")

        results[table_name] = table_results

    return results


def check_referential_integrity(data_frames):
    """
    Check referential integrity between tables.
    """
    results = {}

    for fk in FOREIGN_KEYS:
        relationship = _relationship_name(fk)

        if (fk['table'] in data_frames and fk['ref_table'] in data_frames and
                fk['key'] in data_frames[fk['table']].columns and
                fk['ref_key'] in data_frames[fk['ref_table']].columns):

            fk_values = _key_values(data_frames[fk['table']][fk['key']])
            ref_values = _key_values(data_frames[fk['ref_table']][fk['ref_key']])

            # Foreign keys without matching reference keys
            orphaned = sorted(fk_values - ref_values)
            orphaned_count = len(orphaned)

            results[relationship] = {
                'orphaned_count': orphaned_count,
                'orphaned_examples': orphaned[:10]
            }

            if orphaned_count > 0:
                logger.warning(
                    f"Referential integrity issue: {orphaned_count} values in "
                    f"{fk['table']}.{fk['key']} have no matching {fk['ref_table']}.{fk['ref_key']}"
                )
        else:
            results[relationship] = {'error': 'Missing table or column'}

    return results


def count_quality_issues(quality_results):
    """Total number of problems across all checks."""
    total = 0
    for result in quality_results.get('missing_values', {}).values():
        total += result.get('total_missing', 0)
    for result in quality_results.get('duplicate_keys', {}).values():
        total += result.get('duplicate_count', 0)
    for column_results in quality_results.get('value_ranges', {}).values():
        for result in column_results.values():
            total += result.get('invalid_count', 0)
    for result in quality_results.get('referential_integrity', {}).values():
        total += result.get('orphaned_count', 0)
    return total


def has_quality_issues(quality_results):
    return count_quality_issues(quality_results) > 0


def apply_data_fixes(data_frames, quality_results):
    """
    Apply fixes to data quality issues.

    Returns fixed copies; the input frames are left untouched.
    """
    try:
        logger.info("Applying data quality fixes")

        fixed_data = {
            table: df.copy() for table, df in data_frames.items()
        }

        # Rows missing a required column cannot be joined or reported on
        for table, result in quality_results.get('missing_values', {}).items():
            if table in fixed_data and result.get('total_missing', 0) > 0:
                required = [
                    col for col in REQUIRED_COLUMNS.get(table, [])
                    if col in fixed_data[table].columns
                ]
                logger.info(f"Dropping rows with missing {required} values from '{table}'")
                fixed_data[table] = fixed_data[table].dropna(subset=required)

        # Keep the first occurrence of each primary key
        for table, result in quality_results.get('duplicate_keys', {}).items():
            if table in fixed_data and result.get('duplicate_count', 0) > 0:
                logger.info(f"Removing duplicate keys from '{table}'")
                fixed_data[table] = fixed_data[table].drop_duplicates(
                    subset=PRIMARY_KEYS[table],
                    keep='first'
                )

        value_results = quality_results.get('value_ranges', {})

        # A line with no pizzas ordered is not a sale
        quantity_result = value_results.get('order_details', {}).get('quantity', {})
        if 'order_details' in fixed_data and quantity_result.get('invalid_count', 0) > 0:
            logger.info(f"Dropping {quantity_result['invalid_count']} order lines with invalid quantity")
            quantities = pd.to_numeric(fixed_data['order_details']['quantity'], errors='coerce')
            fixed_data['order_details'] = fixed_data['order_details'][quantities >= 1]

        price_result = value_results.get('pizzas', {}).get('price', {})
        if 'pizzas' in fixed_data and price_result.get('invalid_count', 0) > 0:
            logger.info(f"Fixing {price_result['invalid_count']} invalid prices in 'pizzas'")
            prices = pd.to_numeric(fixed_data['pizzas']['price'], errors='coerce')
            pizzas = fixed_data['pizzas'][prices.notna()].copy()
            # Only negative prices are rewritten; the rest keep their scale
            negative = prices[prices.notna()] < 0
            pizzas['price'] = pizzas['price'].astype(object)
            pizzas.loc[negative, 'price'] = pizzas.loc[negative, 'price'].map(lambda v: abs(to_decimal(v)))
            fixed_data['pizzas'] = pizzas

        # Filter out rows with orphaned foreign keys; children are checked
        # after their parents have been fixed
        for fk in reversed(FOREIGN_KEYS):
            if fk['table'] not in fixed_data or fk['ref_table'] not in fixed_data:
                continue
            child = fixed_data[fk['table']]
            ref_values = _key_values(fixed_data[fk['ref_table']][fk['ref_key']])
            mask = _key_strings(child[fk['key']]).reindex(child.index).isin(ref_values)
            if not mask.all():
                logger.info(
                    f"Filtering out {int((~mask).sum())} orphaned rows from "
                    f"'{fk['table']}.{fk['key']}'"
                )
                fixed_data[fk['table']] = child[mask]

        for table, original_df in data_frames.items():
            if table in fixed_data:
                rows_diff = len(fixed_data[table]) - len(original_df)
                if rows_diff != 0:
                    logger.info(f"{abs(rows_diff)} rows removed from '{table}'")

        logger.info("Data quality fixes applied successfully")
        return fixed_data
    except Exception as e:
        logger.error(f"Error applying data quality fixes: {str(e)}")
        logger.error(traceback.format_exc())
        raise
