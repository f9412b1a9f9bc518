"""
Database models for the pizza sales source tables.
"""
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, Time, ForeignKey
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Order(Base):
    """One row per customer order."""
    __tablename__ = 'orders'

    order_id = Column(Integer, primary_key=True, autoincrement=False)
    order_date = Column(Date, nullable=False)
    order_time = Column(Time, nullable=False)


class OrderDetail(Base):
    """One line item of an order."""
    __tablename__ = 'order_details'

    order_details_id = Column(Integer, primary_key=True, autoincrement=False)
    order_id = Column(Integer, ForeignKey('orders.order_id'), nullable=False)
    pizza_id = Column(String(50), ForeignKey('pizzas.pizza_id'), nullable=False)
    quantity = Column(Integer, nullable=False)


class Pizza(Base):
    """A priced size-variant of a pizza type."""
    __tablename__ = 'pizzas'

    pizza_id = Column(String(50), primary_key=True)
    pizza_type_id = Column(String(50), ForeignKey('pizza_types.pizza_type_id'), nullable=False)
    size = Column(String(10), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)


class PizzaType(Base):
    """Catalog entry for a named, categorised pizza."""
    __tablename__ = 'pizza_types'

    pizza_type_id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False)
    ingredients = Column(Text)


# Parents before children; reverse it for deletes.
SOURCE_TABLES = {
    'pizza_types': PizzaType,
    'pizzas': Pizza,
    'orders': Order,
    'order_details': OrderDetail,
}
