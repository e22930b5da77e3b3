"""
Data quality checks for the source relations.

The sources are owned upstream, so these checks only report issues; nothing
here modifies the data.
"""
import logging
import pandas as pd
import numpy as np
import traceback

logger = logging.getLogger(__name__)

# Primary keys for each source relation
PRIMARY_KEYS = {
    'orders': ['order_id'],
    'customer_loyalty': ['customer_id'],
    'truck_reviews': ['review_id']
}

# Optional foreign key relationships (NULL keys are not orphans)
FOREIGN_KEYS = [
    {'table': 'orders', 'key': 'customer_id', 'ref_table': 'customer_loyalty', 'ref_key': 'customer_id'},
    {'table': 'truck_reviews', 'key': 'order_id', 'ref_table': 'orders', 'ref_key': 'order_id'}
]

ORDER_TOTAL_TOLERANCE = 0.01


def run_data_quality_checks(data_frames):
    """
    Run a series of data quality checks on the source data.

    """
    try:
        logger.info("Running data quality checks")

        quality_results = {}

        # Run individual checks
        quality_results['missing_values'] = check_missing_values(data_frames)
        quality_results['duplicate_keys'] = check_duplicate_keys(data_frames)
        quality_results['value_ranges'] = check_value_ranges(data_frames)
        quality_results['referential_integrity'] = check_referential_integrity(data_frames)

        if 'orders' in data_frames:
            try:
                discrepancies = verify_order_totals(data_frames['orders'])
                quality_results['order_total_discrepancies'] = {
                    'discrepancy_count': len(discrepancies),
                    'order_ids': discrepancies['order_id'].head(10).tolist()
                }
            except KeyError as e:
                logger.warning(f"Skipping order total verification: {e.args[0]}")
                quality_results['order_total_discrepancies'] = {
                    'discrepancy_count': 0,
                    'order_ids': [],
                    'error': e.args[0]
                }

        total_issues = count_issues(quality_results)
        quality_results['total_issues'] = total_issues

        if total_issues > 0:
            logger.warning(f"Found a total of {total_issues} data quality issues")
        else:
            logger.info("All data quality checks passed")

        return quality_results
    except Exception as e:
        logger.error(f"Error running data quality checks: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def count_issues(quality_results):
    """
    Sum the issue counts reported by each check.
    """
    total = 0
    for table_result in quality_results.get('missing_values', {}).values():
        total += int(table_result.get('total_missing', 0))
    for table_result in quality_results.get('duplicate_keys', {}).values():
        total += int(table_result.get('duplicate_count', 0))
    for table_result in quality_results.get('value_ranges', {}).values():
        for column_result in table_result.values():
            total += int(column_result.get('invalid_count', 0))
    for relationship_result in quality_results.get('referential_integrity', {}).values():
        total += int(relationship_result.get('orphaned_count', 0))
    total += int(quality_results.get('order_total_discrepancies', {}).get('discrepancy_count', 0))
    return total


def check_missing_values(data_frames):
    """
    Check for missing values in each DataFrame.
    """
    results = {}

    for table_name, df in data_frames.items():
        # Get count of missing values by column
        missing_by_column = df.isnull().sum()
        total_missing = int(missing_by_column.sum())

        # Only include columns with missing values
        missing_columns = {
            col: int(count) for col, count in missing_by_column[missing_by_column > 0].items()
        }

        results[table_name] = {
            'total_missing': total_missing,
            'missing_columns': missing_columns
        }

        if total_missing > 0:
            logger.warning(f"Table '{table_name}' has {total_missing} missing values")
            for col, count in missing_columns.items():
                logger.warning(f"  - Column '{col}': {count} missing values")

    return results


def check_duplicate_keys(data_frames):
    """
    Check for duplicate primary keys in each DataFrame.
    """
    results = {}

    for table_name, df in data_frames.items():
        if table_name not in PRIMARY_KEYS:
            continue

        pk_columns = PRIMARY_KEYS[table_name]

        # Skip if not all primary key columns exist
        if not all(col in df.columns for col in pk_columns):
            results[table_name] = {
                'duplicate_count': 0,
                'error': f"Not all primary key columns {pk_columns} exist in table"
            }
            continue

        duplicates = df[df.duplicated(subset=pk_columns, keep=False)]
        duplicate_count = len(duplicates)

        results[table_name] = {
            'duplicate_count': duplicate_count,
            'duplicate_keys': duplicates[pk_columns].head(10).values.tolist() if duplicate_count > 0 else []
        }

        if duplicate_count > 0:
            logger.warning(f"Table '{table_name}' has {duplicate_count} duplicate primary keys")

    return results


def check_value_ranges(data_frames):
    """
    Check for values outside of expected ranges.
    """
    results = {}

    range_checks = {
        'orders': {
            'quantity': lambda x: x > 0,
            'unit_price': lambda x: x >= 0,
            'order_total': lambda x: x >= 0,
        },
        'customer_loyalty': {
            'total_sales': lambda x: x >= 0,
        }
    }

    for table_name, df in data_frames.items():
        if table_name not in range_checks:
            continue

        table_results = {}
        for column, condition in range_checks[table_name].items():
            if column not in df.columns:
                table_results[column] = {'invalid_count': 0, 'error': f"Column '{column}' not found in table"}
                continue

            values = pd.to_numeric(df[column], errors='coerce').astype(float)
            # Missing values are reported by check_missing_values
            invalid_mask = values.notna() & ~condition(values)
            invalid_count = int(invalid_mask.sum())

            table_results[column] = {
                'invalid_count': invalid_count,
                'invalid_examples': df.loc[invalid_mask, column].head(5).tolist() if invalid_count > 0 else []
            }

            if invalid_count > 0:
                logger.warning(f"Table '{table_name}' has {invalid_count} invalid values in column '{column}'")

        results[table_name] = table_results

    return results


def check_referential_integrity(data_frames):
    """
    Check referential integrity between tables.
    """
    results = {}

    for fk in FOREIGN_KEYS:
        relationship = f"{fk['table']}.{fk['key']} -> {fk['ref_table']}.{fk['ref_key']}"

        if (fk['table'] in data_frames and fk['ref_table'] in data_frames and
                fk['key'] in data_frames[fk['table']].columns and
                fk['ref_key'] in data_frames[fk['ref_table']].columns):

            fk_values = set(data_frames[fk['table']][fk['key']].dropna().unique())
            ref_values = set(data_frames[fk['ref_table']][fk['ref_key']].dropna().unique())

            orphaned = fk_values - ref_values
            orphaned_count = len(orphaned)

            results[relationship] = {
                'orphaned_count': orphaned_count,
                'orphaned_examples': sorted(orphaned)[:10] if orphaned_count > 0 else []
            }

            if orphaned_count > 0:
                logger.warning(
                    f"Referential integrity issue: {orphaned_count} values in "
                    f"{fk['table']}.{fk['key']} have no matching {fk['ref_table']}.{fk['ref_key']}"
                )
        else:
            results[relationship] = {'orphaned_count': 0, 'error': 'Missing table or column'}

    return results


def verify_order_totals(orders_df):
    """
    Find orders whose order_total differs from quantity * unit_price.

    Returns:
        DataFrame: order_id, order_total, calculated_total, difference for each discrepancy
    """
    columns = ['order_id', 'order_total', 'calculated_total', 'difference']
    required = ['order_id', 'quantity', 'unit_price', 'order_total']

    missing = [col for col in required if col not in orders_df.columns]
    if missing:
        raise KeyError(f"Orders data is missing columns required for total verification: {missing}")

    logger.info("Verifying order totals")

    totals = orders_df[['order_id']].copy()
    totals['order_total'] = pd.to_numeric(orders_df['order_total'], errors='coerce').astype(float)
    totals['calculated_total'] = (
        pd.to_numeric(orders_df['quantity'], errors='coerce').astype(float) *
        pd.to_numeric(orders_df['unit_price'], errors='coerce').astype(float)
    )
    totals['difference'] = (totals['order_total'] - totals['calculated_total']).abs()

    # Differences within tolerance are float noise
    within_tolerance = np.isclose(
        totals['order_total'],
        totals['calculated_total'],
        rtol=0,
        atol=ORDER_TOTAL_TOLERANCE
    )
    comparable = totals[['order_total', 'calculated_total']].notna().all(axis=1)
    discrepancies = totals.loc[comparable & ~within_tolerance, columns]

    if len(discrepancies) > 0:
        logger.warning(f"Found {len(discrepancies)} orders with total amount discrepancies")
    else:
        logger.info("All order totals match quantity * unit_price")

    return discrepancies
