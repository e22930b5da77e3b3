"""
Database models describing the read-only source relations.
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Order(Base):
    """Denormalized order fact relation, one row per order."""
    __tablename__ = 'orders_v'

    order_id = Column(Integer, primary_key=True)
    date = Column(Date)
    truck_id = Column(Integer)
    order_timestamp = Column(DateTime)
    customer_id = Column(Integer)
    truck_brand_name = Column(String(100))
    menu_type = Column(String(100))
    primary_city = Column(String(100))
    country = Column(String(100))
    menu_item_name = Column(String(200))
    quantity = Column(Integer)
    unit_price = Column(Float)
    order_total = Column(Float)


class CustomerLoyalty(Base):
    """Customer loyalty metrics relation."""
    __tablename__ = 'customer_loyalty_metrics_v'

    customer_id = Column(Integer, primary_key=True)
    city = Column(String(100))
    country = Column(String(100))
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(50))
    email = Column(String(200))
    total_sales = Column(Float)
    visited_location_ids = Column(JSON(none_as_null=True))


class TruckReview(Base):
    """Free-text truck reviews relation."""
    __tablename__ = 'truck_reviews_v'

    review_id = Column(Integer, primary_key=True)
    order_id = Column(Integer)
    truck_id = Column(Integer)
    customer_id = Column(Integer)
    language = Column(String(20))
    source = Column(String(50))
    review_text = Column(Text)
    date = Column(Date)
    truck_brand_name = Column(String(100))


# Logical source name -> model, keyed the same way as Config.get_source_tables()
SOURCE_MODELS = {
    'orders': Order,
    'customer_loyalty': CustomerLoyalty,
    'truck_reviews': TruckReview
}


def expected_columns(source):
    """
    Column names a source relation must expose.
    """
    return [column.name for column in SOURCE_MODELS[source].__table__.columns]
