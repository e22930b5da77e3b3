"""
Dashboard definition: tiles bound to catalog queries with shared filters.
"""
import logging
import traceback
from truck_reporting.exceptions import ReportingError
from truck_reporting.queries.binder import CountryFilter, DateRange
from truck_reporting.queries.catalog import get_query
from truck_reporting.queries.runner import run_query
from truck_reporting.transformation.calculations import (
    add_review_sentiment_share,
    revenue_share,
    summarize_kpis
)

logger = logging.getLogger(__name__)

DEFAULT_TILES = [
    {'key': 'daily_trend', 'title': 'Daily Sales Trend', 'query': 'daily_trend', 'chart': 'line'},
    {'key': 'country_city', 'title': 'Revenue by Country & City', 'query': 'country_city_performance', 'chart': 'bar'},
    {'key': 'menu_items', 'title': 'Menu Item Performance', 'query': 'menu_item_performance', 'chart': 'table'},
    {'key': 'loyalty', 'title': 'Top Loyalty Customers', 'query': 'customer_loyalty_ranking', 'chart': 'table'},
    {'key': 'brands', 'title': 'Truck Brands & Reviews', 'query': 'truck_brand_reviews', 'chart': 'bar'},
]


class Dashboard:
    """A named set of tiles rendered with one set of filter values."""

    def __init__(self, name='Tasty Bytes Sales', tiles=None):
        self.name = name
        self.tiles = list(tiles) if tiles is not None else list(DEFAULT_TILES)

        keys = [tile['key'] for tile in self.tiles]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Duplicate tile keys in dashboard '{name}': {keys}")

        # Fail early on tiles bound to unknown queries
        for tile in self.tiles:
            get_query(tile['query'])

    def filters_for(self, tile, date_range, countries):
        """
        Keep only the dashboard filters the tile's query accepts.
        """
        accepted = get_query(tile['query'])['parameters']
        return {
            'date_range': date_range if 'date_range' in accepted else None,
            'countries': countries if 'country' in accepted else None
        }

    def render(self, engine, config, date_range=None, countries=None):
        """
        Run every tile's query.

        Returns:
            dict: 'tiles' (key -> DataFrame), 'errors' (key -> message) and
                  'kpis' (headline metrics from the daily trend tile, if present)
        """
        if date_range is not None and not isinstance(date_range, DateRange):
            date_range = DateRange(*date_range)
        if not isinstance(countries, CountryFilter):
            countries = CountryFilter(countries)

        logger.info(f"Rendering dashboard '{self.name}' with {date_range} and {countries}")

        rendered = {'tiles': {}, 'errors': {}, 'kpis': None}
        for tile in self.tiles:
            filters = self.filters_for(tile, date_range, countries)
            try:
                result_df = run_query(
                    engine,
                    tile['query'],
                    date_range=filters['date_range'],
                    countries=filters['countries'],
                    sources=config.get_source_tables(),
                    empty_country_behavior=config.get_empty_country_behavior()
                )
            except ReportingError as e:
                logger.error(f"Tile '{tile['title']}' failed: {str(e)}")
                logger.error(traceback.format_exc())
                rendered['errors'][tile['key']] = str(e)
                continue

            if tile['query'] == 'truck_brand_reviews':
                result_df = add_review_sentiment_share(result_df)
            elif tile['query'] == 'country_city_performance':
                result_df['REVENUE_SHARE'] = revenue_share(result_df)

            rendered['tiles'][tile['key']] = result_df

            if tile['query'] == 'daily_trend':
                rendered['kpis'] = summarize_kpis(result_df)

        logger.info(
            f"Rendered {len(rendered['tiles'])} tiles, {len(rendered['errors'])} failed"
        )
        return rendered
