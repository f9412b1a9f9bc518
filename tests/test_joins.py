from datetime import time, timedelta
from decimal import Decimal

import pandas as pd
import pytest

from pizza_sales.transformation.joins import (
    parse_time_of_day,
    prepare_dataset,
    join_priced_lines,
    join_catalog_lines,
    join_dated_lines,
)
from pizza_sales.transformation.money import percentage, round_half_up, to_decimal


def test_prepare_dataset_types(sample_dataset):
    orders = sample_dataset.orders
    assert pd.api.types.is_datetime64_any_dtype(orders['order_date'])
    assert orders.loc[0, 'order_time'] == time(11, 38, 36)
    assert sample_dataset.order_details['quantity'].dtype == 'int64'
    assert sample_dataset.pizzas.loc[0, 'price'] == Decimal('12.00')


def test_prepare_dataset_accepts_csv_header_aliases(sample_frames):
    frames = dict(sample_frames)
    frames['orders'] = frames['orders'].rename(
        columns={'order_id': ' order_id ', 'order_date': 'date', 'order_time': 'time'}
    )
    dataset = prepare_dataset(**frames)
    assert list(dataset.orders.columns) == ['order_id', 'order_date', 'order_time']


def test_prepare_dataset_keeps_ingredients(sample_frames):
    frames = dict(sample_frames)
    frames['pizza_types'] = frames['pizza_types'].assign(ingredients='Tomatoes', extra='x')
    dataset = prepare_dataset(**frames)
    assert list(dataset.pizza_types.columns) == ['pizza_type_id', 'name', 'category', 'ingredients']


def test_prepare_dataset_does_not_modify_input(sample_frames):
    original = sample_frames['pizzas'].copy()
    prepare_dataset(**sample_frames)
    assert sample_frames['pizzas'].equals(original)


def test_prepare_dataset_missing_column(sample_frames):
    frames = dict(sample_frames)
    frames['pizzas'] = frames['pizzas'].drop(columns=['price'])
    with pytest.raises(ValueError, match="pizzas"):
        prepare_dataset(**frames)


def test_prepare_dataset_float_prices(sample_frames):
    frames = dict(sample_frames)
    frames['pizzas'] = frames['pizzas'].assign(price=[12.0, 20.5, 13.25, 18.5, 16.75, 35.95])
    dataset = prepare_dataset(**frames)
    assert list(dataset.pizzas['price']) == [
        Decimal('12.0'), Decimal('20.5'), Decimal('13.25'),
        Decimal('18.5'), Decimal('16.75'), Decimal('35.95'),
    ]


@pytest.mark.parametrize('value, expected', [
    ('11:38:36', time(11, 38, 36)),
    (' 09:05 ', time(9, 5)),
    ('23:59:59.500000', time(23, 59, 59, 500000)),
    (time(8, 0), time(8, 0)),
    (pd.Timestamp('2015-01-01 17:30:00'), time(17, 30)),
    (timedelta(hours=13, minutes=2, seconds=3), time(13, 2, 3)),
])
def test_parse_time_of_day(value, expected):
    assert parse_time_of_day(value) == expected


def test_parse_time_of_day_invalid():
    with pytest.raises(ValueError):
        parse_time_of_day('noon')


def test_join_priced_lines_revenue(sample_dataset):
    lines = join_priced_lines(sample_dataset)
    assert len(lines) == 8
    assert lines.loc[lines['order_details_id'] == 4, 'line_revenue'].item() == Decimal('55.50')


def test_join_catalog_lines_columns(sample_dataset):
    lines = join_catalog_lines(sample_dataset)
    assert {'pizza_name', 'category', 'line_revenue'} <= set(lines.columns)


def test_join_dated_lines_drops_lines_without_order(make_dataset):
    dataset = make_dataset(
        orders=[(1, '2023-01-01', '10:00:00')],
        order_details=[(1, 1, 'p1', 1), (2, 99, 'p1', 4)],
        pizzas=[('p1', 't1', 'M', '10.00')],
        pizza_types=[('t1', 'Only', 'Classic')],
    )
    assert list(join_dated_lines(dataset)['order_details_id']) == [1]
    assert list(join_dated_lines(dataset, priced=True)['line_revenue']) == [Decimal('10.00')]


def test_to_decimal_rejects_missing():
    with pytest.raises(ValueError):
        to_decimal(float('nan'))
    with pytest.raises(ValueError):
        to_decimal('twelve')


def test_round_half_up():
    assert round_half_up(Decimal('2.5'), 0) == Decimal('3')
    assert round_half_up(Decimal('-2.5'), 0) == Decimal('-3')
    assert round_half_up(Decimal('1.005'), 2) == Decimal('1.01')


def test_percentage_of_zero_total():
    assert percentage(Decimal('5'), Decimal('0')) == Decimal('0.00')
