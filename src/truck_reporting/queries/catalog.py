"""
SQL query definitions for the food truck sales dashboard.

Source relations are referenced through placeholders resolved from the
[SOURCES] config section:
- {orders}: order fact relation
- {customer_loyalty}: customer loyalty metrics relation
- {truck_reviews}: truck reviews relation

Queries that accept filters also carry {date_filter} and {country_filter},
which the binder replaces with generated clauses (or nothing). WHERE 1 = 1
keeps the clause valid when both filters are empty. {array_size} is the
dialect's array length function (see ARRAY_SIZE_FUNCTIONS).
"""
from truck_reporting.exceptions import UnknownQueryError

POSITIVE_KEYWORDS = ('great', 'amazing', 'excellent')
NEGATIVE_KEYWORDS = ('bad', 'terrible', 'awful')


DEFAULT_ARRAY_SIZE_FUNCTION = 'json_array_length'

# Dialect name -> function giving the length of a JSON or ARRAY column
ARRAY_SIZE_FUNCTIONS = {
    'sqlite': 'json_array_length',
    'postgresql': 'json_array_length',
    'mysql': 'JSON_LENGTH',
    'snowflake': 'ARRAY_SIZE'
}


def array_size_function(dialect_name):
    """
    Name of the array length function for a dialect, defaulting to json_array_length.
    """
    return ARRAY_SIZE_FUNCTIONS.get(dialect_name, DEFAULT_ARRAY_SIZE_FUNCTION)


def keyword_match_sql(column, keywords):
    """
    Case-insensitive substring match of column against any of keywords.
    """
    return ' OR '.join(f"LOWER({column}) LIKE '%{keyword}%'" for keyword in keywords)


DAILY_TREND_QUERY = """
    SELECT
        o.date AS DATE,
        COUNT(DISTINCT o.order_id) AS TOTAL_ORDERS,
        SUM(o.order_total) AS DAILY_REVENUE,
        AVG(o.order_total) AS AVERAGE_ORDER_VALUE,
        COUNT(DISTINCT o.customer_id) AS UNIQUE_CUSTOMERS
    FROM
        {orders} o
    WHERE
        1 = 1
        {date_filter}
        {country_filter}
    GROUP BY
        o.date
    ORDER BY
        o.date
"""

COUNTRY_CITY_QUERY = """
    SELECT
        o.country AS COUNTRY,
        o.primary_city AS CITY,
        COUNT(DISTINCT o.order_id) AS TOTAL_ORDERS,
        SUM(o.order_total) AS TOTAL_REVENUE,
        AVG(o.order_total) AS AVERAGE_ORDER_VALUE,
        COUNT(DISTINCT o.customer_id) AS UNIQUE_CUSTOMERS
    FROM
        {orders} o
    WHERE
        1 = 1
        {date_filter}
        {country_filter}
    GROUP BY
        o.country,
        o.primary_city
    ORDER BY
        TOTAL_REVENUE DESC,
        COUNTRY,
        CITY
"""

MENU_ITEM_QUERY = """
    SELECT
        o.menu_item_name AS MENU_ITEM_NAME,
        o.menu_type AS MENU_TYPE,
        SUM(o.quantity) AS TOTAL_QUANTITY_SOLD,
        SUM(o.order_total) AS TOTAL_REVENUE,
        AVG(o.unit_price) AS AVERAGE_PRICE,
        COUNT(DISTINCT o.order_id) AS ORDER_COUNT
    FROM
        {orders} o
    GROUP BY
        o.menu_item_name,
        o.menu_type
    ORDER BY
        TOTAL_REVENUE DESC,
        MENU_ITEM_NAME,
        MENU_TYPE
"""

# LEFT JOIN keeps loyalty members without orders: zero orders, NULL average.
# visited_location_ids is constant per customer; MAX keeps it out of GROUP BY.
CUSTOMER_LOYALTY_QUERY = """
    SELECT
        c.customer_id AS CUSTOMER_ID,
        c.first_name AS FIRST_NAME,
        c.last_name AS LAST_NAME,
        c.city AS CITY,
        c.country AS COUNTRY,
        COALESCE(SUM(o.order_total), 0) AS LIFETIME_VALUE,
        COUNT(DISTINCT o.order_id) AS TOTAL_ORDERS,
        AVG(o.order_total) AS AVERAGE_ORDER_SIZE,
        COALESCE(MAX({array_size}(c.visited_location_ids)), 0) AS LOCATIONS_VISITED
    FROM
        {customer_loyalty} c
    LEFT JOIN
        {orders} o ON o.customer_id = c.customer_id
    GROUP BY
        c.customer_id,
        c.first_name,
        c.last_name,
        c.city,
        c.country
    ORDER BY
        LIFETIME_VALUE DESC,
        CUSTOMER_ID
"""

# Orders and reviews are aggregated separately so the join does not fan out
TRUCK_BRAND_REVIEWS_QUERY = """
    WITH brand_orders AS (
        SELECT
            truck_brand_name,
            COUNT(DISTINCT order_id) AS total_orders,
            SUM(order_total) AS total_revenue,
            AVG(order_total) AS average_order_value
        FROM
            {orders}
        GROUP BY
            truck_brand_name
    ),
    brand_reviews AS (
        SELECT
            truck_brand_name,
            COUNT(review_id) AS total_reviews,
            SUM(CASE WHEN """ + keyword_match_sql('review_text', POSITIVE_KEYWORDS) + """
                THEN 1 ELSE 0 END) AS positive_reviews,
            SUM(CASE WHEN """ + keyword_match_sql('review_text', NEGATIVE_KEYWORDS) + """
                THEN 1 ELSE 0 END) AS negative_reviews
        FROM
            {truck_reviews}
        GROUP BY
            truck_brand_name
    )
    SELECT
        bo.truck_brand_name AS TRUCK_BRAND_NAME,
        bo.total_orders AS TOTAL_ORDERS,
        bo.total_revenue AS TOTAL_REVENUE,
        bo.average_order_value AS AVERAGE_ORDER_VALUE,
        COALESCE(br.total_reviews, 0) AS TOTAL_REVIEWS,
        COALESCE(br.positive_reviews, 0) AS POSITIVE_REVIEWS,
        COALESCE(br.negative_reviews, 0) AS NEGATIVE_REVIEWS
    FROM
        brand_orders bo
    LEFT JOIN
        brand_reviews br ON br.truck_brand_name = bo.truck_brand_name
    ORDER BY
        TOTAL_REVENUE DESC,
        TRUCK_BRAND_NAME
"""

QUERY_CATALOG = {
    "daily_trend": {
        "name": "daily_trend",
        "query": DAILY_TREND_QUERY,
        "label": "Daily Sales Trend",
        "description": "Orders, revenue, average order value and distinct customers per day.",
        "parameters": ("date_range", "country"),
        "date_filter_column": "o.date",
        "country_filter_column": "o.country",
        "columns": ("DATE", "TOTAL_ORDERS", "DAILY_REVENUE", "AVERAGE_ORDER_VALUE", "UNIQUE_CUSTOMERS"),
        "date_columns": ("DATE",)
    },
    "country_city_performance": {
        "name": "country_city_performance",
        "query": COUNTRY_CITY_QUERY,
        "label": "Country & City Performance",
        "description": "Orders, revenue, average order value and distinct customers per country and city.",
        "parameters": ("date_range", "country"),
        "date_filter_column": "o.date",
        "country_filter_column": "o.country",
        "columns": ("COUNTRY", "CITY", "TOTAL_ORDERS", "TOTAL_REVENUE", "AVERAGE_ORDER_VALUE", "UNIQUE_CUSTOMERS"),
        "date_columns": ()
    },
    "menu_item_performance": {
        "name": "menu_item_performance",
        "query": MENU_ITEM_QUERY,
        "label": "Menu Item Performance",
        "description": "Quantity sold, revenue, average price and order count per menu item and menu type.",
        "parameters": (),
        "columns": ("MENU_ITEM_NAME", "MENU_TYPE", "TOTAL_QUANTITY_SOLD", "TOTAL_REVENUE", "AVERAGE_PRICE", "ORDER_COUNT"),
        "date_columns": ()
    },
    "customer_loyalty_ranking": {
        "name": "customer_loyalty_ranking",
        "query": CUSTOMER_LOYALTY_QUERY,
        "label": "Customer Loyalty Ranking",
        "description": "Lifetime value, order count, average order size and locations visited per loyalty member.",
        "parameters": (),
        "columns": (
            "CUSTOMER_ID", "FIRST_NAME", "LAST_NAME", "CITY", "COUNTRY",
            "LIFETIME_VALUE", "TOTAL_ORDERS", "AVERAGE_ORDER_SIZE", "LOCATIONS_VISITED"
        ),
        "date_columns": ()
    },
    "truck_brand_reviews": {
        "name": "truck_brand_reviews",
        "query": TRUCK_BRAND_REVIEWS_QUERY,
        "label": "Truck Brand Performance & Reviews",
        "description": "Orders and revenue per truck brand alongside review volume and keyword sentiment counts.",
        "parameters": (),
        "columns": (
            "TRUCK_BRAND_NAME", "TOTAL_ORDERS", "TOTAL_REVENUE", "AVERAGE_ORDER_VALUE",
            "TOTAL_REVIEWS", "POSITIVE_REVIEWS", "NEGATIVE_REVIEWS"
        ),
        "date_columns": ()
    }
}


def get_query(name):
    """
    Look up a catalog entry by name.
    """
    try:
        return QUERY_CATALOG[name]
    except KeyError:
        raise UnknownQueryError(name) from None


def list_queries():
    """
    Return (name, label, description) for every catalog query, in catalog order.
    """
    return [
        (name, entry['label'], entry['description'])
        for name, entry in QUERY_CATALOG.items()
    ]
