"""
Execution of catalog queries against the source relations.
"""
import logging
import traceback
import pandas as pd
from sqlalchemy.exc import DBAPIError, NoSuchColumnError, NoSuchTableError
from truck_reporting.config import EMPTY_COUNTRY_MATCH_NOTHING
from truck_reporting.exceptions import EmptyResultError, QueryExecutionError, QueryReferenceError
from truck_reporting.queries.binder import DateRange, bind_query
from truck_reporting.queries.catalog import get_query

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = {
    'orders': 'orders_v',
    'customer_loyalty': 'customer_loyalty_metrics_v',
    'truck_reviews': 'truck_reviews_v'
}

# Driver messages that mean a table or column does not exist
NOT_FOUND_MARKERS = (
    'no such table',
    'no such column',
    'does not exist',
    "doesn't exist",
    'invalid identifier',
    'unknown column',
    'undefined table',
    'undefined column'
)


def is_reference_error(error):
    """
    Check whether a database error reports a missing table or column.
    """
    if isinstance(error, (NoSuchTableError, NoSuchColumnError)):
        return True
    message = str(getattr(error, 'orig', None) or error).lower()
    return any(marker in message for marker in NOT_FOUND_MARKERS)


def run_query(engine, name, date_range=None, countries=None, sources=None,
              empty_country_behavior=EMPTY_COUNTRY_MATCH_NOTHING, require_rows=False):
    """
    Run a catalog query and return its result table.

    Args:
        engine: SQLAlchemy engine carrying the connection settings (role, warehouse)
        name (str): Catalog query name
        date_range: DateRange or (start, end) tuple, for queries that accept one
        countries: Country names, "all" or None
        sources (dict): Logical source name -> table name
        empty_country_behavior (str): How an empty country selection is bound
        require_rows (bool): Raise EmptyResultError instead of returning no rows

    Returns:
        DataFrame: One row per group, with the catalog entry's columns
    """
    entry = get_query(name)

    if date_range is not None and not isinstance(date_range, DateRange):
        date_range = DateRange(*date_range)

    stmt, params = bind_query(
        entry,
        sources or DEFAULT_SOURCES,
        date_range=date_range,
        countries=countries,
        empty_country_behavior=empty_country_behavior,
        dialect_name=engine.dialect.name
    )

    try:
        logger.info(f"Running query '{name}' with params {params}")
        with engine.connect() as conn:
            result = conn.execute(stmt, params)
            rows = result.fetchall()
            columns = [str(col).upper() for col in result.keys()]
    except DBAPIError as e:
        logger.error(f"Error running query '{name}': {str(e)}")
        logger.error(traceback.format_exc())
        if is_reference_error(e):
            raise QueryReferenceError(name, str(e.orig)) from e
        raise QueryExecutionError(name, str(e.orig)) from e

    result_df = pd.DataFrame([tuple(row) for row in rows], columns=columns)

    for column in entry.get('date_columns', ()):
        if column in result_df.columns and len(result_df) > 0:
            result_df[column] = pd.to_datetime(result_df[column]).dt.date

    if result_df.empty:
        logger.warning(
            f"Query '{name}' returned no rows for {params}; check that the filters "
            f"overlap the data (see get_order_date_span)"
        )
        if require_rows:
            raise EmptyResultError(name, params)
    else:
        logger.info(f"Query '{name}' returned {len(result_df)} rows")

    return result_df


def run_configured_query(engine, config, name, date_range=None, countries=None, require_rows=False):
    """
    Run a catalog query using source names and filter defaults from config.
    """
    entry = get_query(name)
    if date_range is None and 'date_range' in entry['parameters']:
        default_range = config.get_default_date_range()
        if default_range is not None:
            date_range = DateRange(*default_range)

    return run_query(
        engine,
        name,
        date_range=date_range,
        countries=countries,
        sources=config.get_source_tables(),
        empty_country_behavior=config.get_empty_country_behavior(),
        require_rows=require_rows
    )
