"""
Configuration handling for the food truck reporting library.
"""
import os
import logging
import configparser
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()
# Load environment variables
REPORTING_DB_TYPE = os.getenv("REPORTING_DB_TYPE", "sqlite")
REPORTING_DB_HOST = os.getenv("REPORTING_DB_HOST", "")
REPORTING_DB_PORT = os.getenv("REPORTING_DB_PORT", "")
REPORTING_DB_NAME = os.getenv("REPORTING_DB_NAME", "data/tasty_bytes.db")
REPORTING_DB_USER = os.getenv("REPORTING_DB_USER", "")
REPORTING_DB_PASSWORD = os.getenv("REPORTING_DB_PASSWORD", "")
REPORTING_DB_SCHEMA = os.getenv("REPORTING_DB_SCHEMA", "")
REPORTING_DB_ROLE = os.getenv("REPORTING_DB_ROLE", "")
REPORTING_DB_WAREHOUSE = os.getenv("REPORTING_DB_WAREHOUSE", "")

logger = logging.getLogger(__name__)

EMPTY_COUNTRY_MATCH_NOTHING = 'match_nothing'
EMPTY_COUNTRY_NO_FILTER = 'no_filter'


class Config:
    """Configuration manager for the reporting library."""

    def __init__(self, config_file='config.ini'):
        """
        Initialize configuration from config file.
        """
        self.config = configparser.ConfigParser(interpolation=None)

        # Set default values
        self._set_defaults()

        # Try to read from config file
        config_path = Path(config_file) if config_file else None
        if config_path is not None and config_path.exists():
            self.config.read(config_path)
            logger.info(f"Loaded configuration from {config_path}")
        else:
            logger.warning(f"Config file {config_file} not found. Using defaults.")

    def _set_defaults(self):
        """Set default configuration values."""
        self.config['DATABASE'] = {
            'type': REPORTING_DB_TYPE,
            'name': REPORTING_DB_NAME,
            'host': REPORTING_DB_HOST,
            'port': REPORTING_DB_PORT,
            'user': REPORTING_DB_USER,
            'password': REPORTING_DB_PASSWORD,
            'schema': REPORTING_DB_SCHEMA,
            'role': REPORTING_DB_ROLE,
            'warehouse': REPORTING_DB_WAREHOUSE
        }

        self.config['LOGGING'] = {
            'level': 'INFO',
            'file': 'logs/reporting.log'
        }

        self.config['PATHS'] = {
            'input_dir': 'data/input',
            'output_dir': 'data/output'
        }

        self.config['SOURCES'] = {
            'orders': 'orders_v',
            'customer_loyalty': 'customer_loyalty_metrics_v',
            'truck_reviews': 'truck_reviews_v'
        }

        self.config['REPORTING'] = {
            'default_start_date': '',
            'default_end_date': '',
            'empty_country_filter': EMPTY_COUNTRY_MATCH_NOTHING
        }

    def setup_logging(self):
        """Configure logging based on settings."""
        log_config = self.config['LOGGING']
        log_level = getattr(logging, log_config.get('level', 'INFO').upper(), logging.INFO)
        log_file = log_config.get('file', 'logs/reporting.log')

        handlers = [logging.StreamHandler()]
        if log_file:
            # Create directory for log file if it doesn't exist
            log_dir = os.path.dirname(log_file)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir)
            handlers.insert(0, logging.FileHandler(log_file))

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=handlers
        )

    def get_database_config(self):
        """
        Get database connection settings, including the role and warehouse
        used for every query issued through the resulting engine.
        """
        section = self.config['DATABASE']
        return {
            'type': section.get('type'),
            'name': section.get('name'),
            'host': section.get('host'),
            'port': section.get('port'),
            'user': section.get('user'),
            'password': section.get('password'),
            'schema': section.get('schema'),
            'role': section.get('role'),
            'warehouse': section.get('warehouse')
        }

    def get_source_tables(self):
        """
        Get the names of the orders, customer loyalty and truck review relations.
        """
        return {
            'orders': self.config['SOURCES'].get('orders', 'orders_v'),
            'customer_loyalty': self.config['SOURCES'].get('customer_loyalty', 'customer_loyalty_metrics_v'),
            'truck_reviews': self.config['SOURCES'].get('truck_reviews', 'truck_reviews_v')
        }

    def get_default_date_range(self):
        """
        Get the configured default (start, end) strings, or None when either is unset.
        """
        start = self.config['REPORTING'].get('default_start_date', '').strip()
        end = self.config['REPORTING'].get('default_end_date', '').strip()
        if not start or not end:
            return None
        return start, end

    def get_empty_country_behavior(self):
        """
        How an empty country selection is bound: 'match_nothing' or 'no_filter'.
        """
        behavior = self.config['REPORTING'].get(
            'empty_country_filter', EMPTY_COUNTRY_MATCH_NOTHING
        ).strip().lower()
        if behavior not in (EMPTY_COUNTRY_MATCH_NOTHING, EMPTY_COUNTRY_NO_FILTER):
            raise ValueError(f"Unsupported empty_country_filter setting: {behavior}")
        return behavior

    def get_input_path(self, filename=None):
        """
        Get input directory or file path.

        """
        input_dir = self.config['PATHS'].get('input_dir', 'data/input')

        if filename:
            return os.path.join(input_dir, filename)
        return input_dir

    def get_output_path(self, filename=None):
        """
        Get output directory or file path.

        """
        output_dir = self.config['PATHS'].get('output_dir', 'data/output')

        # Create directory if it doesn't exist
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)

        if filename:
            return os.path.join(output_dir, filename)
        return output_dir
