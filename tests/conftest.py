import pandas as pd
import pytest

from pizza_sales.transformation.joins import prepare_dataset

ORDER_COLUMNS = ['order_id', 'order_date', 'order_time']
ORDER_DETAIL_COLUMNS = ['order_details_id', 'order_id', 'pizza_id', 'quantity']
PIZZA_COLUMNS = ['pizza_id', 'pizza_type_id', 'size', 'price']
PIZZA_TYPE_COLUMNS = ['pizza_type_id', 'name', 'category']

SAMPLE_ORDERS = [
    (1, '2015-01-01', '11:38:36'),
    (2, '2015-01-01', '11:57:40'),
    (3, '2015-01-02', '12:12:28'),
    (4, '2015-01-02', '18:05:00'),
    (5, '2015-01-03', '18:45:10'),
]

SAMPLE_ORDER_DETAILS = [
    (1, 1, 'classic_dlx_s', 1),
    (2, 1, 'hawaiian_m', 2),
    (3, 2, 'classic_dlx_l', 1),
    (4, 3, 'five_cheese_l', 3),
    (5, 3, 'thai_ckn_m', 1),
    (6, 4, 'classic_dlx_s', 2),
    (7, 5, 'thai_ckn_m', 2),
    (8, 5, 'hawaiian_m', 1),
]

SAMPLE_PIZZAS = [
    ('classic_dlx_s', 'classic_dlx', 'S', '12.00'),
    ('classic_dlx_l', 'classic_dlx', 'L', '20.50'),
    ('hawaiian_m', 'hawaiian', 'M', '13.25'),
    ('five_cheese_l', 'five_cheese', 'L', '18.50'),
    ('thai_ckn_m', 'thai_ckn', 'M', '16.75'),
    ('the_greek_xxl', 'the_greek', 'XXL', '35.95'),
]

SAMPLE_PIZZA_TYPES = [
    ('classic_dlx', 'The Classic Deluxe Pizza', 'Classic'),
    ('hawaiian', 'The Hawaiian Pizza', 'Classic'),
    ('five_cheese', 'The Five Cheese Pizza', 'Veggie'),
    ('thai_ckn', 'The Thai Chicken Pizza', 'Chicken'),
    ('the_greek', 'The Greek Pizza', 'Classic'),
]


def raw_frames(orders=(), order_details=(), pizzas=(), pizza_types=()):
    return {
        'orders': pd.DataFrame(list(orders), columns=ORDER_COLUMNS),
        'order_details': pd.DataFrame(list(order_details), columns=ORDER_DETAIL_COLUMNS),
        'pizzas': pd.DataFrame(list(pizzas), columns=PIZZA_COLUMNS),
        'pizza_types': pd.DataFrame(list(pizza_types), columns=PIZZA_TYPE_COLUMNS),
    }


@pytest.fixture
def make_dataset():
    """Build a PizzaDataset from row tuples."""
    def _make(orders=(), order_details=(), pizzas=(), pizza_types=()):
        return prepare_dataset(**raw_frames(orders, order_details, pizzas, pizza_types))
    return _make


@pytest.fixture
def sample_frames():
    return raw_frames(SAMPLE_ORDERS, SAMPLE_ORDER_DETAILS, SAMPLE_PIZZAS, SAMPLE_PIZZA_TYPES)


@pytest.fixture
def sample_dataset(sample_frames):
    return prepare_dataset(**sample_frames)


@pytest.fixture
def empty_dataset(make_dataset):
    return make_dataset()


@pytest.fixture
def source_dir(tmp_path):
    """Source CSV files laid out with the public dataset's headers."""
    input_dir = tmp_path / 'input'
    input_dir.mkdir()

    pd.DataFrame(SAMPLE_ORDERS, columns=['order_id', 'date', 'time']).to_csv(
        input_dir / 'orders.csv', index=False)
    pd.DataFrame(SAMPLE_ORDER_DETAILS, columns=ORDER_DETAIL_COLUMNS).to_csv(
        input_dir / 'order_details.csv', index=False)
    pd.DataFrame(SAMPLE_PIZZAS, columns=PIZZA_COLUMNS).to_csv(
        input_dir / 'pizzas.csv', index=False)
    pd.DataFrame(
        [row + ('Mozzarella Cheese, Tomatoes',) for row in SAMPLE_PIZZA_TYPES],
        columns=PIZZA_TYPE_COLUMNS + ['ingredients']
    ).to_csv(input_dir / 'pizza_types.csv', index=False)

    return input_dir


@pytest.fixture
def config_file(tmp_path, source_dir):
    path = tmp_path / 'config.ini'
    path.write_text(
        "[DATABASE]\n"
        "type = sqlite\n"
        f"name = {tmp_path / 'db' / 'pizza_sales.db'}\n"
        "\n[LOGGING]\n"
        "level = INFO\n"
        f"file = {tmp_path / 'logs' / 'pipeline.log'}\n"
        "\n[PATHS]\n"
        f"input_dir = {source_dir}\n"
        f"output_dir = {tmp_path / 'output'}\n"
    )
    return path
