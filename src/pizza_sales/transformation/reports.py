"""
Reporting query set over the pizza sales dataset.

Every report takes a PizzaDataset and returns either a scalar or a DataFrame.
None of them modify the dataset. Money columns hold decimal.Decimal values.
"""
import logging
import traceback
from decimal import Decimal
from itertools import accumulate

import pandas as pd

from pizza_sales.transformation.joins import (
    join_priced_lines,
    join_catalog_lines,
    join_dated_lines
)
from pizza_sales.transformation.money import decimal_sum, round_half_up, percentage

logger = logging.getLogger(__name__)

DEFAULT_REPORT_SETTINGS = {
    'top_types_by_quantity': 5,
    'top_types_by_revenue': 3,
    'top_per_category': 3,
    'fill_missing_hours': False,
}


def _empty_frame(columns):
    return pd.DataFrame({col: pd.Series(dtype=object) for col in columns})


def _sort_descending(df, column):
    # Stable, so ties keep the order in which groups first appeared
    return df.sort_values(column, ascending=False, kind='stable').reset_index(drop=True)


def _sum_quantity(lines, key):
    return lines.groupby(key, sort=False)['quantity'].sum().reset_index(name='total_quantity')


def _sum_revenue(lines, keys, column='revenue'):
    return lines.groupby(keys, sort=False)['line_revenue'].agg(decimal_sum).reset_index(name=column)


def competition_rank(values):
    """
    Rank values already sorted in descending order.

    Equal values share a rank and the next distinct value skips past the
    ties: [30, 30, 10] ranks as [1, 1, 3].
    """
    ranks = []
    previous = None
    for position, value in enumerate(values, start=1):
        if ranks and value == previous:
            ranks.append(ranks[-1])
        else:
            ranks.append(position)
        previous = value
    return ranks


def total_orders(dataset):
    """Number of orders placed."""
    return int(dataset.orders['order_id'].count())


def total_revenue(dataset):
    """Sum of quantity * price over all order lines, rounded to cents."""
    lines = join_priced_lines(dataset)
    return round_half_up(decimal_sum(lines['line_revenue']), 2)


def highest_priced_pizza(dataset):
    """
    The single most expensive catalog pizza with its type name.

    On equal prices the first pizza in catalog order wins.
    """
    catalog = dataset.pizzas[['pizza_type_id', 'price']].merge(
        dataset.pizza_types[['pizza_type_id', 'name']],
        on='pizza_type_id',
        how='inner'
    )
    if catalog.empty:
        return _empty_frame(['pizza_name', 'price'])

    top = _sort_descending(catalog, 'price').head(1)
    return top.rename(columns={'name': 'pizza_name'})[['pizza_name', 'price']]


def most_common_size(dataset):
    """The pizza size with the largest ordered quantity."""
    lines = join_priced_lines(dataset)
    if lines.empty:
        return _empty_frame(['size', 'total_quantity'])

    return _sort_descending(_sum_quantity(lines, 'size'), 'total_quantity').head(1)


def top_pizza_types_by_quantity(dataset, limit=5):
    """Most ordered pizza types by quantity."""
    lines = join_catalog_lines(dataset)
    if lines.empty:
        return _empty_frame(['pizza_name', 'total_quantity'])

    return _sort_descending(_sum_quantity(lines, 'pizza_name'), 'total_quantity').head(limit)


def quantity_by_category(dataset):
    """Total quantity ordered per pizza category, largest first."""
    lines = join_catalog_lines(dataset)
    if lines.empty:
        return _empty_frame(['category', 'total_quantity'])

    return _sort_descending(_sum_quantity(lines, 'category'), 'total_quantity')


def orders_by_hour(dataset, fill_missing_hours=False):
    """
    Number of orders per hour of the day, in hour order.

    Only hours with orders are listed unless fill_missing_hours is set, in
    which case all 24 hours appear with zero counts where nothing was ordered.
    """
    orders = dataset.orders
    if orders.empty and not fill_missing_hours:
        return _empty_frame(['order_hour', 'total_orders'])

    hours = orders.assign(order_hour=orders['order_time'].map(lambda t: t.hour))
    counts = hours.groupby('order_hour')['order_id'].count()

    if fill_missing_hours:
        counts = counts.reindex(range(24), fill_value=0)

    result = counts.rename_axis('order_hour').reset_index(name='total_orders')
    return result.astype({'order_hour': 'int64', 'total_orders': 'int64'})


def pizza_types_by_category(dataset):
    """Number of distinct pizza type names in each category."""
    types = dataset.pizza_types
    if types.empty:
        return _empty_frame(['category', 'total_pizza_types'])

    return types.groupby('category')['name'].nunique().reset_index(name='total_pizza_types')


def avg_pizzas_per_day(dataset):
    """
    Mean of the daily ordered quantity, rounded to a whole pizza.

    Days without order lines do not count. Returns 0 for an empty dataset.
    """
    lines = join_dated_lines(dataset)
    if lines.empty:
        return 0

    daily_quantity = lines.groupby('order_date')['quantity'].sum()
    mean = Decimal(int(daily_quantity.sum())) / Decimal(len(daily_quantity))
    return int(round_half_up(mean, 0))


def top_pizza_types_by_revenue(dataset, limit=3):
    """Pizza types with the highest revenue."""
    lines = join_catalog_lines(dataset)
    if lines.empty:
        return _empty_frame(['pizza_name', 'revenue'])

    return _sort_descending(_sum_revenue(lines, ['pizza_name']), 'revenue').head(limit)


def revenue_percentage_by_category(dataset):
    """
    Each category's share of total revenue, in percent to two decimals.

    When total revenue is zero every category reports 0.00.
    """
    lines = join_catalog_lines(dataset)
    if lines.empty:
        return _empty_frame(['category', 'revenue_percentage'])

    total = decimal_sum(join_priced_lines(dataset)['line_revenue'])
    if total == 0:
        logger.warning("Total revenue is zero, reporting 0% for every category")

    by_category = _sum_revenue(lines, ['category'])
    by_category['revenue_percentage'] = by_category['revenue'].map(
        lambda revenue: percentage(revenue, total)
    ).astype(object)

    return _sort_descending(by_category[['category', 'revenue_percentage']], 'revenue_percentage')


def cumulative_revenue(dataset):
    """Running total of daily revenue in date order."""
    lines = join_dated_lines(dataset, priced=True)
    if lines.empty:
        return _empty_frame(['order_date', 'cumulative_revenue'])

    daily_revenue = lines.groupby('order_date', sort=True)['line_revenue'].agg(decimal_sum)

    return pd.DataFrame({
        'order_date': list(daily_revenue.index.date),
        'cumulative_revenue': list(accumulate(daily_revenue.tolist()))
    })


def top_pizza_types_per_category(dataset, limit=3):
    """
    Best-selling pizza types by revenue within each category.

    Types are ranked per category with competition ranking and kept while
    their rank is at most `limit`, so ties at the cut-off can return more
    than `limit` rows for a category.
    """
    columns = ['category', 'pizza_name', 'revenue', 'rank_in_category']
    lines = join_catalog_lines(dataset)
    if lines.empty:
        return _empty_frame(columns)

    revenue = _sum_revenue(lines, ['category', 'pizza_name'])

    ranked = []
    for _, group in revenue.groupby('category', sort=True):
        ordered = group.sort_values('revenue', ascending=False, kind='stable')
        ordered = ordered.assign(rank_in_category=competition_rank(ordered['revenue'].tolist()))
        ranked.append(ordered[ordered['rank_in_category'] <= limit])

    return pd.concat(ranked, ignore_index=True)[columns]


def _scalar_frame(name, value):
    return pd.DataFrame({name: [value]})


def run_reports(dataset, settings=None):
    """
    Compute every report.

    Returns a dict of report name to DataFrame, scalar reports wrapped in
    one-row frames. `settings` overrides DEFAULT_REPORT_SETTINGS.
    """
    options = dict(DEFAULT_REPORT_SETTINGS)
    if settings:
        options.update(settings)

    builders = [
        ('total_orders', lambda: _scalar_frame('total_orders', total_orders(dataset))),
        ('total_revenue', lambda: _scalar_frame('total_revenue', total_revenue(dataset))),
        ('highest_priced_pizza', lambda: highest_priced_pizza(dataset)),
        ('most_common_size', lambda: most_common_size(dataset)),
        ('top_pizza_types_by_quantity',
         lambda: top_pizza_types_by_quantity(dataset, options['top_types_by_quantity'])),
        ('quantity_by_category', lambda: quantity_by_category(dataset)),
        ('orders_by_hour', lambda: orders_by_hour(dataset, options['fill_missing_hours'])),
        ('pizza_types_by_category', lambda: pizza_types_by_category(dataset)),
        ('avg_pizzas_per_day', lambda: _scalar_frame('avg_pizzas_per_day', avg_pizzas_per_day(dataset))),
        ('top_pizza_types_by_revenue',
         lambda: top_pizza_types_by_revenue(dataset, options['top_types_by_revenue'])),
        ('revenue_percentage_by_category', lambda: revenue_percentage_by_category(dataset)),
        ('cumulative_revenue', lambda: cumulative_revenue(dataset)),
        ('top_pizza_types_per_category',
         lambda: top_pizza_types_per_category(dataset, options['top_per_category'])),
    ]

    reports = {}
    for name, build in builders:
        try:
            logger.info(f"Running report {name}")
            reports[name] = build()
        except Exception as e:
            logger.error(f"Error running report {name}: {str(e)}")
            logger.error(traceback.format_exc())
            raise

    logger.info(f"Computed {len(reports)} reports")
    return reports
