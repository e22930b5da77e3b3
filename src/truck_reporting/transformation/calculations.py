"""
Derived business metrics computed from catalog query results.
"""
import logging
import traceback
import pandas as pd

logger = logging.getLogger(__name__)


def summarize_kpis(daily_trend_df):
    """
    Headline KPIs over the whole range covered by a daily trend result.

    Distinct customers cannot be summed across days, so the summary only
    carries additive metrics and the order value derived from them.
    """
    try:
        logger.info("Calculating headline KPIs")

        total_orders = int(daily_trend_df['TOTAL_ORDERS'].sum()) if len(daily_trend_df) else 0
        total_revenue = float(daily_trend_df['DAILY_REVENUE'].fillna(0).sum()) if len(daily_trend_df) else 0.0

        kpis = {
            'total_orders': total_orders,
            'total_revenue': total_revenue,
            'average_order_value': total_revenue / total_orders if total_orders else None,
            'days_with_orders': int(len(daily_trend_df)),
            'first_date': daily_trend_df['DATE'].min() if len(daily_trend_df) else None,
            'last_date': daily_trend_df['DATE'].max() if len(daily_trend_df) else None
        }

        logger.info(f"KPIs: {kpis['total_orders']} orders, revenue {kpis['total_revenue']:.2f}")
        return kpis
    except Exception as e:
        logger.error(f"Error calculating KPIs: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def add_review_sentiment_share(brand_reviews_df):
    """
    Add positive and negative review shares to a truck brand result.
    Brands without reviews get NULL shares.
    """
    result = brand_reviews_df.copy()
    reviews = result['TOTAL_REVIEWS'].where(result['TOTAL_REVIEWS'] > 0)

    result['POSITIVE_SHARE'] = result['POSITIVE_REVIEWS'] / reviews
    result['NEGATIVE_SHARE'] = result['NEGATIVE_REVIEWS'] / reviews

    return result


def revenue_share(df, revenue_column='TOTAL_REVENUE'):
    """
    Fraction of total revenue contributed by each row.
    """
    total = df[revenue_column].sum()
    if not total:
        return pd.Series([None] * len(df), index=df.index, dtype='float64')
    return df[revenue_column] / total
