"""
Read-only access to the source relations: diagnostics and extracts.
"""
import os
import logging
import traceback
import pandas as pd
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from truck_reporting.db.models import expected_columns
from truck_reporting.queries.binder import to_date

logger = logging.getLogger(__name__)

# Column dtypes for CSV extracts of each source; nullable so gaps reach the quality checks
SOURCE_DTYPES = {
    'orders': {
        'order_id': 'Int64',
        'truck_id': 'Int64',
        'customer_id': 'Int64',
        'truck_brand_name': 'string',
        'menu_type': 'string',
        'primary_city': 'string',
        'country': 'string',
        'menu_item_name': 'string',
        'quantity': 'Int64',
        'unit_price': 'float',
        'order_total': 'float'
    },
    'customer_loyalty': {
        'customer_id': 'Int64',
        'city': 'string',
        'country': 'string',
        'first_name': 'string',
        'last_name': 'string',
        'phone': 'string',
        'email': 'string',
        'total_sales': 'float'
    },
    'truck_reviews': {
        'review_id': 'Int64',
        'order_id': 'Int64',
        'truck_id': 'Int64',
        'customer_id': 'Int64',
        'language': 'string',
        'source': 'string',
        'review_text': 'string',
        'truck_brand_name': 'string'
    }
}

SOURCE_FILES = {
    'orders': 'orders.csv',
    'customer_loyalty': 'customer_loyalty.csv',
    'truck_reviews': 'truck_reviews.csv'
}


def split_table_name(table_name):
    """
    Split 'schema.table' into (schema, table); schema is None when absent.
    """
    if '.' in table_name:
        schema, table = table_name.rsplit('.', 1)
        return schema, table
    return None, table_name


def check_sources(engine, sources):
    """
    Describe each source relation: whether it exists, which expected columns
    it lacks and how many rows it holds.

    Args:
        engine: SQLAlchemy engine
        sources (dict): Logical source name -> table name

    Returns:
        dict: Logical source name -> diagnostics dict
    """
    results = {}
    inspector = inspect(engine)

    for source, table_name in sources.items():
        schema, table = split_table_name(table_name)
        try:
            if not inspector.has_table(table, schema=schema):
                logger.warning(f"Source '{source}' table {table_name} not found")
                results[source] = {
                    'table': table_name,
                    'exists': False,
                    'missing_columns': expected_columns(source),
                    'row_count': None
                }
                continue

            actual = {col['name'].lower() for col in inspector.get_columns(table, schema=schema)}
            missing = [col for col in expected_columns(source) if col.lower() not in actual]
            if missing:
                logger.warning(f"Source '{source}' table {table_name} is missing columns: {missing}")

            row_count = count_rows(engine, table_name)
            results[source] = {
                'table': table_name,
                'exists': True,
                'missing_columns': missing,
                'row_count': row_count
            }
            if row_count == 0:
                logger.warning(f"Source '{source}' table {table_name} is empty")
        except SQLAlchemyError as e:
            logger.error(f"Error describing source '{source}': {str(e)}")
            logger.error(traceback.format_exc())
            raise

    return results


def count_rows(engine, table_name):
    """
    Count the rows in a source relation.
    """
    with engine.connect() as conn:
        return conn.execute(text(f"SELECT COUNT(*) FROM {table_name}")).scalar()


def get_order_date_span(engine, sources):
    """
    Get the earliest and latest order dates.

    Returns:
        tuple or None: (first_date, last_date), or None when there are no orders
    """
    query = f"SELECT MIN(date) AS first_date, MAX(date) AS last_date FROM {sources['orders']}"
    try:
        with engine.connect() as conn:
            result = conn.execute(text(query)).fetchone()
    except SQLAlchemyError as e:
        logger.error(f"Error getting order date span: {str(e)}")
        raise

    if result is None or result[0] is None:
        logger.info("No orders found; order date span is empty")
        return None

    span = (to_date(_as_date_value(result[0])), to_date(_as_date_value(result[1])))
    logger.info(f"Order dates span {span[0]} to {span[1]}")
    return span


def _as_date_value(value):
    # SQLite returns untyped aggregates as 'YYYY-MM-DD' strings
    if isinstance(value, str):
        return value[:10]
    return value


def read_source_tables(engine, sources):
    """
    Read every source relation into a DataFrame.
    """
    data_frames = {}
    try:
        with engine.connect() as conn:
            for source, table_name in sources.items():
                df = pd.read_sql(text(f"SELECT * FROM {table_name}"), conn)
                df.columns = [str(col).lower() for col in df.columns]
                logger.info(f"Read {len(df)} rows from {table_name}")
                data_frames[source] = df
        return data_frames
    except SQLAlchemyError as e:
        logger.error(f"Failed to read source tables: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def load_csv_extract(file_path, source):
    """
    Load a CSV extract of one source relation.

    """
    logger.info(f"Loading {source} extract from {file_path}")

    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Extract not found: {file_path}")

    df = pd.read_csv(file_path)
    df.columns = [col.strip().lower() for col in df.columns]

    dtypes = {col: dtype for col, dtype in SOURCE_DTYPES.get(source, {}).items() if col in df.columns}
    df = df.astype(dtypes)

    if 'date' in df.columns:
        df['date'] = pd.to_datetime(df['date'], errors='coerce').dt.date

    logger.info(f"Loaded {len(df)} rows from {file_path}")

    missing_values = df.isnull().sum().sum()
    if missing_values > 0:
        logger.warning(f"Found {missing_values} missing values in {file_path}")

    return df


def load_csv_extracts(config):
    """
    Load CSV extracts of all source relations from the configured input directory.

    Returns:
        dict: Logical source name -> DataFrame
    """
    try:
        return {
            source: load_csv_extract(config.get_input_path(filename), source)
            for source, filename in SOURCE_FILES.items()
        }
    except Exception as e:
        logger.error(f"Failed to load CSV extracts: {str(e)}")
        logger.error(traceback.format_exc())
        raise
