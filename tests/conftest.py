"""
Shared fixtures: in-memory SQLite source relations seeded with a small
food truck dataset.

Dataset summary (order_id: date, customer, country/city, brand, total):
    1: 2021-01-01, customer 1, United States/Boston,  Freezing Point, 10.0
    2: 2021-01-01, customer 2, United States/Boston,  Guac n Roll,    20.0
    3: 2021-01-02, customer 1, Canada/Toronto,        Freezing Point, 12.0
    4: 2021-01-03, customer 3, Canada/Vancouver,      Guac n Roll,    40.0
    5: 2021-01-05, guest,      United States/Boston,  Freezing Point,  5.0
Customer 4 is a loyalty member with no orders. Customer 3 has visited three
locations but ordered in one city only.
"""
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from truck_reporting.config import Config
from truck_reporting.db.engine import create_session, init_db
from truck_reporting.db.models import Base, CustomerLoyalty, Order, TruckReview


def make_order(order_id, day, customer_id, country, city, brand, menu_type, item, quantity, unit_price,
               order_total=None, truck_id=1):
    return Order(
        order_id=order_id,
        date=day,
        truck_id=truck_id,
        order_timestamp=datetime(day.year, day.month, day.day, 12, 0),
        customer_id=customer_id,
        truck_brand_name=brand,
        menu_type=menu_type,
        primary_city=city,
        country=country,
        menu_item_name=item,
        quantity=quantity,
        unit_price=unit_price,
        order_total=quantity * unit_price if order_total is None else order_total
    )


@pytest.fixture
def engine():
    """Empty in-memory SQLite database with the source tables created"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine, Base)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    session = create_session(engine)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_engine(engine, session):
    """Engine over the sample dataset described in the module docstring"""
    session.add_all([
        make_order(1, date(2021, 1, 1), 1, 'United States', 'Boston', 'Freezing Point', 'Ice Cream', 'Lemonade', 2, 5.0, truck_id=1),
        make_order(2, date(2021, 1, 1), 2, 'United States', 'Boston', 'Guac n Roll', 'Tacos', 'Fish Burrito', 1, 20.0, truck_id=2),
        make_order(3, date(2021, 1, 2), 1, 'Canada', 'Toronto', 'Freezing Point', 'Ice Cream', 'Sugar Cone', 3, 4.0, truck_id=3),
        make_order(4, date(2021, 1, 3), 3, 'Canada', 'Vancouver', 'Guac n Roll', 'Tacos', 'Fish Burrito', 2, 20.0, truck_id=2),
        make_order(5, date(2021, 1, 5), None, 'United States', 'Boston', 'Freezing Point', 'Ice Cream', 'Lemonade', 1, 5.0, truck_id=1),
    ])
    session.add_all([
        CustomerLoyalty(customer_id=1, city='Boston', country='United States', first_name='Ana', last_name='Smith',
                        phone='555-0101', email='ana@example.com', total_sales=22.0, visited_location_ids=[101, 202]),
        CustomerLoyalty(customer_id=2, city='Boston', country='United States', first_name='Ben', last_name='Lee',
                        phone='555-0102', email='ben@example.com', total_sales=20.0, visited_location_ids=[101]),
        CustomerLoyalty(customer_id=3, city='Vancouver', country='Canada', first_name='Cai', last_name='Wu',
                        phone='555-0103', email='cai@example.com', total_sales=40.0, visited_location_ids=[303, 404, 505]),
        CustomerLoyalty(customer_id=4, city='Toronto', country='Canada', first_name='Dee', last_name='Roe',
                        phone='555-0104', email='dee@example.com', total_sales=0.0, visited_location_ids=[]),
    ])
    session.add_all([
        TruckReview(review_id=1, order_id=1, truck_id=1, customer_id=1, language='en', source='app',
                    review_text='Great ice cream, amazing!', date=date(2021, 1, 1), truck_brand_name='Freezing Point'),
        TruckReview(review_id=2, order_id=3, truck_id=3, customer_id=1, language='en', source='app',
                    review_text='Terrible wait and bad service', date=date(2021, 1, 2), truck_brand_name='Freezing Point'),
        TruckReview(review_id=3, order_id=2, truck_id=2, customer_id=2, language='en', source='web',
                    review_text='It was great but the salsa was awful', date=date(2021, 1, 1), truck_brand_name='Guac n Roll'),
        TruckReview(review_id=4, order_id=4, truck_id=2, customer_id=3, language='en', source='web',
                    review_text='Okay.', date=date(2021, 1, 3), truck_brand_name='Guac n Roll'),
        TruckReview(review_id=5, order_id=None, truck_id=2, customer_id=None, language='en', source='kiosk',
                    review_text='EXCELLENT tacos', date=date(2021, 1, 4), truck_brand_name='Guac n Roll'),
    ])
    session.commit()
    return engine


@pytest.fixture
def config(tmp_path):
    """Default configuration with output redirected to a temporary directory"""
    config = Config(None)
    config.config['PATHS']['input_dir'] = str(tmp_path / 'input')
    config.config['PATHS']['output_dir'] = str(tmp_path / 'output')
    config.config['LOGGING']['file'] = ''
    return config
