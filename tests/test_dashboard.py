"""
Tests for dashboard rendering and derived metrics.
"""
from datetime import date

import pandas as pd
import pytest

from truck_reporting.dashboard import DEFAULT_TILES, Dashboard
from truck_reporting.exceptions import UnknownQueryError
from truck_reporting.transformation.calculations import (
    add_review_sentiment_share,
    revenue_share,
    summarize_kpis
)


class TestDashboardDefinition:

    def test_default_tiles_cover_catalog(self):
        assert [tile['query'] for tile in Dashboard().tiles] == [
            'daily_trend',
            'country_city_performance',
            'menu_item_performance',
            'customer_loyalty_ranking',
            'truck_brand_reviews'
        ]

    def test_unknown_query_tile_rejected(self):
        with pytest.raises(UnknownQueryError):
            Dashboard(tiles=[{'key': 'x', 'title': 'X', 'query': 'nope', 'chart': 'bar'}])

    def test_duplicate_tile_keys_rejected(self):
        with pytest.raises(ValueError, match="Duplicate tile keys"):
            Dashboard(tiles=[DEFAULT_TILES[0], DEFAULT_TILES[0]])

    def test_filters_only_reach_tiles_that_accept_them(self):
        dashboard = Dashboard()
        menu_tile = next(tile for tile in dashboard.tiles if tile['query'] == 'menu_item_performance')
        assert dashboard.filters_for(menu_tile, 'range', ['Canada']) == {'date_range': None, 'countries': None}


class TestDashboardRender:

    def test_render_all_tiles(self, seeded_engine, config):
        rendered = Dashboard().render(
            seeded_engine, config, date_range=('2021-01-01', '2021-01-05'), countries=['United States']
        )

        assert rendered['errors'] == {}
        assert set(rendered['tiles']) == {tile['key'] for tile in DEFAULT_TILES}

        # Country filter applies to the trend and breakdown only
        assert set(rendered['tiles']['country_city']['COUNTRY']) == {'United States'}
        assert rendered['tiles']['daily_trend']['DAILY_REVENUE'].sum() == pytest.approx(35.0)
        assert rendered['tiles']['menu_items']['TOTAL_REVENUE'].sum() == pytest.approx(87.0)

        assert rendered['kpis']['total_orders'] == 3
        assert rendered['kpis']['total_revenue'] == pytest.approx(35.0)
        assert rendered['kpis']['first_date'] == date(2021, 1, 1)
        assert rendered['kpis']['last_date'] == date(2021, 1, 5)

        assert 'POSITIVE_SHARE' in rendered['tiles']['brands'].columns
        assert rendered['tiles']['country_city']['REVENUE_SHARE'].sum() == pytest.approx(1.0)

    def test_failed_tile_is_reported_without_stopping_others(self, seeded_engine, config):
        config.config['SOURCES']['truck_reviews'] = 'reviews_archive'

        rendered = Dashboard().render(seeded_engine, config)

        assert list(rendered['errors']) == ['brands']
        assert 'reviews_archive' in rendered['errors']['brands']
        assert len(rendered['tiles']) == len(DEFAULT_TILES) - 1


class TestCalculations:

    def test_summarize_kpis(self):
        daily = pd.DataFrame({
            'DATE': [date(2021, 1, 1), date(2021, 1, 2)],
            'TOTAL_ORDERS': [2, 2],
            'DAILY_REVENUE': [30.0, 10.0],
            'AVERAGE_ORDER_VALUE': [15.0, 5.0],
            'UNIQUE_CUSTOMERS': [2, 1]
        })
        kpis = summarize_kpis(daily)
        assert kpis['total_orders'] == 4
        assert kpis['total_revenue'] == pytest.approx(40.0)
        assert kpis['average_order_value'] == pytest.approx(10.0)
        assert kpis['days_with_orders'] == 2

    def test_summarize_empty_trend(self):
        empty = pd.DataFrame(columns=['DATE', 'TOTAL_ORDERS', 'DAILY_REVENUE'])
        kpis = summarize_kpis(empty)
        assert kpis['total_orders'] == 0
        assert kpis['average_order_value'] is None
        assert kpis['first_date'] is None

    def test_sentiment_share_null_without_reviews(self):
        brands = pd.DataFrame({
            'TRUCK_BRAND_NAME': ['A', 'B'],
            'TOTAL_REVIEWS': [4, 0],
            'POSITIVE_REVIEWS': [3, 0],
            'NEGATIVE_REVIEWS': [1, 0]
        })
        result = add_review_sentiment_share(brands)
        assert result.loc[0, 'POSITIVE_SHARE'] == pytest.approx(0.75)
        assert pd.isna(result.loc[1, 'NEGATIVE_SHARE'])
        assert 'POSITIVE_SHARE' not in brands.columns

    def test_revenue_share_of_zero_total(self):
        share = revenue_share(pd.DataFrame({'TOTAL_REVENUE': [0.0, 0.0]}))
        assert share.isna().all()
