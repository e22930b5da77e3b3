"""
Parameter binding for catalog query templates.

Templates carry two filter placeholders:
- {date_filter}: replaced by "AND <date column> BETWEEN :start_date AND :end_date"
  when a date range is bound, otherwise removed.
- {country_filter}: replaced by "AND <country column> IN :countries" for a country
  selection, removed for the "all" sentinel, and replaced by a false predicate
  for an empty selection (unless configured to treat empty as "all").

Templates reading array columns also use {array_size}, the dialect's array
length function.

Only generated clause text is substituted into templates; filter values always
travel as bind parameters.
"""
import logging
from datetime import date, datetime
import pandas as pd
from sqlalchemy import Date, bindparam, text
from truck_reporting.config import EMPTY_COUNTRY_MATCH_NOTHING, EMPTY_COUNTRY_NO_FILTER
from truck_reporting.queries.catalog import array_size_function

logger = logging.getLogger(__name__)

ALL_COUNTRIES = 'all'
MATCH_NOTHING_PREDICATE = 'AND 1 = 0'


def to_date(value):
    """
    Coerce an ISO string, date or datetime into a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return pd.to_datetime(value.strip(), format='%Y-%m-%d').date()
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid date '{value}': expected YYYY-MM-DD") from e
    raise TypeError(f"Cannot interpret {value!r} as a date")


class DateRange:
    """Inclusive (start, end) date range."""

    def __init__(self, start, end):
        self.start = to_date(start)
        self.end = to_date(end)
        if self.start > self.end:
            raise ValueError(f"Invalid date range: start {self.start} is after end {self.end}")

    def as_params(self):
        return {'start_date': self.start, 'end_date': self.end}

    def clause(self, column):
        return f"AND {column} BETWEEN :start_date AND :end_date"

    def __eq__(self, other):
        if not isinstance(other, DateRange):
            return NotImplemented
        return (self.start, self.end) == (other.start, other.end)

    def __repr__(self):
        return f"DateRange({self.start.isoformat()}, {self.end.isoformat()})"


class CountryFilter:
    """
    A set of country names, or the "all" sentinel meaning no filtering.

    None and the string "all" (any case) both mean "all", as does an iterable
    holding only "all" (what repeated --country options produce). Any other
    string is a single country. An empty iterable is an empty selection, which
    is distinct from "all".
    """

    def __init__(self, countries=ALL_COUNTRIES):
        if countries is None:
            self.countries = None
        elif isinstance(countries, str):
            if countries.strip().lower() == ALL_COUNTRIES:
                self.countries = None
            else:
                self.countries = frozenset([countries.strip()])
        else:
            names = frozenset(c.strip() for c in countries)
            named = frozenset(name for name in names if name.lower() != ALL_COUNTRIES)
            if named == names:
                self.countries = names
            elif named:
                raise ValueError(
                    f"Country selection {sorted(names)} mixes '{ALL_COUNTRIES}' with named countries"
                )
            else:
                self.countries = None

    @property
    def is_all(self):
        return self.countries is None

    @property
    def is_empty(self):
        return self.countries is not None and len(self.countries) == 0

    def clause(self, column, empty_behavior=EMPTY_COUNTRY_MATCH_NOTHING):
        """
        Return the (sql fragment, params) pair for this selection.
        """
        if self.is_all:
            return '', {}
        if self.is_empty:
            if empty_behavior == EMPTY_COUNTRY_NO_FILTER:
                return '', {}
            return MATCH_NOTHING_PREDICATE, {}
        return f"AND {column} IN :countries", {'countries': sorted(self.countries)}

    def __eq__(self, other):
        if not isinstance(other, CountryFilter):
            return NotImplemented
        return self.countries == other.countries

    def __repr__(self):
        if self.is_all:
            return "CountryFilter(all)"
        return f"CountryFilter({sorted(self.countries)})"


def bind_query(entry, sources, date_range=None, countries=None,
               empty_country_behavior=EMPTY_COUNTRY_MATCH_NOTHING, dialect_name=None):
    """
    Substitute source names and filter clauses into a catalog entry's template.

    Args:
        entry (dict): Catalog entry
        sources (dict): Logical source name -> table name
        date_range (DateRange): Optional inclusive date range
        countries: CountryFilter, iterable of names, "all" or None
        empty_country_behavior (str): 'match_nothing' or 'no_filter'
        dialect_name (str): Engine dialect, used for array functions such as {array_size}

    Returns:
        tuple: (TextClause, params dict)
    """
    accepted = entry.get('parameters', ())

    if date_range is not None and 'date_range' not in accepted:
        raise ValueError(f"Query '{entry['name']}' does not accept a date range")

    if not isinstance(countries, CountryFilter):
        countries = CountryFilter(countries)
    if not countries.is_all and 'country' not in accepted:
        raise ValueError(f"Query '{entry['name']}' does not accept a country filter")

    params = {}
    date_filter = ''
    if date_range is not None:
        date_filter = date_range.clause(entry['date_filter_column'])
        params.update(date_range.as_params())

    country_filter = ''
    if 'country' in accepted:
        country_filter, country_params = countries.clause(
            entry['country_filter_column'], empty_country_behavior
        )
        params.update(country_params)

    sql = entry['query'].format(
        date_filter=date_filter,
        country_filter=country_filter,
        array_size=array_size_function(dialect_name),
        **sources
    )

    stmt = text(sql)
    bind_params = []
    if 'start_date' in params:
        bind_params.append(bindparam('start_date', type_=Date))
        bind_params.append(bindparam('end_date', type_=Date))
    if 'countries' in params:
        bind_params.append(bindparam('countries', expanding=True))
    if bind_params:
        stmt = stmt.bindparams(*bind_params)

    logger.debug(f"Bound query '{entry['name']}' with params {params}")
    return stmt, params
