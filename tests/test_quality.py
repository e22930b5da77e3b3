"""
Tests for the source data quality checks.
"""
import pandas as pd
import pytest

from truck_reporting.transformation.quality import (
    check_duplicate_keys,
    check_missing_values,
    check_referential_integrity,
    check_value_ranges,
    run_data_quality_checks,
    verify_order_totals
)


@pytest.fixture
def clean_sources():
    return {
        'orders': pd.DataFrame({
            'order_id': [1, 2, 3],
            'customer_id': [10, 11, None],
            'quantity': [2, 1, 3],
            'unit_price': [5.0, 20.0, 4.0],
            'order_total': [10.0, 20.0, 12.0]
        }),
        'customer_loyalty': pd.DataFrame({
            'customer_id': [10, 11],
            'total_sales': [10.0, 20.0]
        }),
        'truck_reviews': pd.DataFrame({
            'review_id': [100, 101],
            'order_id': [1, None],
            'review_text': ['great', 'bad']
        })
    }


class TestVerifyOrderTotals:

    def test_matching_totals_have_no_discrepancies(self, clean_sources):
        assert verify_order_totals(clean_sources['orders']).empty

    def test_mismatched_total_is_reported(self):
        orders = pd.DataFrame({
            'order_id': [1, 2],
            'quantity': [2, 3],
            'unit_price': [5.0, 1.5],
            'order_total': [10.0, 5.0]
        })

        discrepancies = verify_order_totals(orders)

        assert discrepancies['order_id'].tolist() == [2]
        assert discrepancies.iloc[0]['calculated_total'] == pytest.approx(4.5)
        assert discrepancies.iloc[0]['difference'] == pytest.approx(0.5)

    def test_float_noise_within_tolerance_is_ignored(self):
        orders = pd.DataFrame({
            'order_id': [1],
            'quantity': [3],
            'unit_price': [0.1],
            'order_total': [0.3]
        })
        assert verify_order_totals(orders).empty

    def test_missing_columns_raise(self):
        with pytest.raises(KeyError, match="order_total"):
            verify_order_totals(pd.DataFrame({'order_id': [1], 'quantity': [1], 'unit_price': [1.0]}))


class TestIndividualChecks:

    def test_missing_values_counted_per_column(self, clean_sources):
        results = check_missing_values(clean_sources)
        assert results['orders'] == {'total_missing': 1, 'missing_columns': {'customer_id': 1}}
        assert results['customer_loyalty']['total_missing'] == 0

    def test_duplicate_primary_keys(self, clean_sources):
        clean_sources['truck_reviews'] = pd.DataFrame({'review_id': [100, 100, 101], 'order_id': [1, 2, 3]})
        results = check_duplicate_keys(clean_sources)
        assert results['truck_reviews']['duplicate_count'] == 2
        assert results['orders']['duplicate_count'] == 0

    def test_value_ranges(self, clean_sources):
        clean_sources['orders'].loc[1, 'quantity'] = 0
        clean_sources['orders'].loc[2, 'unit_price'] = -4.0
        results = check_value_ranges(clean_sources)
        assert results['orders']['quantity']['invalid_count'] == 1
        assert results['orders']['unit_price']['invalid_examples'] == [-4.0]
        assert results['orders']['order_total']['invalid_count'] == 0

    def test_null_foreign_keys_are_not_orphans(self, clean_sources):
        results = check_referential_integrity(clean_sources)
        assert results['orders.customer_id -> customer_loyalty.customer_id']['orphaned_count'] == 0
        assert results['truck_reviews.order_id -> orders.order_id']['orphaned_count'] == 0

    def test_orphaned_foreign_keys(self, clean_sources):
        clean_sources['truck_reviews'].loc[1, 'order_id'] = 99
        results = check_referential_integrity(clean_sources)
        relationship = results['truck_reviews.order_id -> orders.order_id']
        assert relationship['orphaned_count'] == 1
        assert relationship['orphaned_examples'] == [99]

    def test_missing_table_is_reported(self, clean_sources):
        del clean_sources['customer_loyalty']
        results = check_referential_integrity(clean_sources)
        assert results['orders.customer_id -> customer_loyalty.customer_id']['error'] == 'Missing table or column'


class TestRunDataQualityChecks:

    def test_only_missing_guest_customer_is_flagged(self, clean_sources):
        results = run_data_quality_checks(clean_sources)
        assert results['order_total_discrepancies']['discrepancy_count'] == 0
        assert results['total_issues'] == 2  # guest order customer_id and review order_id

    def test_issues_are_totalled(self, clean_sources):
        clean_sources['orders'].loc[0, 'order_total'] = 99.0
        clean_sources['orders'].loc[1, 'quantity'] = -1
        results = run_data_quality_checks(clean_sources)

        assert results['order_total_discrepancies']['order_ids'] == [1, 2]
        # 2 missing values, 1 invalid quantity, 2 total discrepancies
        assert results['total_issues'] == 5

    def test_missing_total_columns_are_recorded_not_raised(self, clean_sources):
        clean_sources['orders'] = clean_sources['orders'].drop(columns=['unit_price'])

        results = run_data_quality_checks(clean_sources)

        totals = results['order_total_discrepancies']
        assert totals['discrepancy_count'] == 0
        assert 'unit_price' in totals['error']
        assert results['value_ranges']['orders']['unit_price']['error'] == "Column 'unit_price' not found in table"
        assert results['total_issues'] == 2

    def test_nullable_integer_gaps_are_reported(self, clean_sources):
        orders = clean_sources['orders']
        orders['quantity'] = pd.array([2, None, 3], dtype='Int64')

        results = run_data_quality_checks(clean_sources)

        assert results['missing_values']['orders']['missing_columns']['quantity'] == 1
        assert results['value_ranges']['orders']['quantity']['invalid_count'] == 0
        assert results['order_total_discrepancies']['discrepancy_count'] == 0
