from truck_reporting.queries.binder import ALL_COUNTRIES, CountryFilter, DateRange, bind_query
from truck_reporting.queries.catalog import QUERY_CATALOG, get_query, list_queries
from truck_reporting.queries.runner import run_configured_query, run_query
