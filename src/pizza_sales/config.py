"""
Configuration handling for the pizza sales reporting pipeline.
"""
import os
import logging
import configparser
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()
# Load environment variables
DB_TYPE = os.getenv("DB_TYPE", "sqlite")
DB_NAME = os.getenv("DB_NAME", "data/pizza_sales.db")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "")
POSTGRES_USER = os.getenv("POSTGRES_USER", "")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "")

SOURCES = ('csv', 'database')


class Config:
    """Configuration manager for the pizza sales reporting pipeline."""

    def __init__(self, config_file='config.ini'):
        """
        Initialize configuration from config file.
        """
        self.config = configparser.ConfigParser()

        # Set default values
        self._set_defaults()

        # Try to read from config file
        config_path = Path(config_file)
        if config_path.exists():
            self.config.read(config_path)
            self._setup_logging()
        else:
            print(f"Warning: Config file {config_file} not found. Using defaults.")

    def _set_defaults(self):
        """Set default configuration values."""
        self.config['DATABASE'] = {
            'type': DB_TYPE,
            'name': DB_NAME,
            'host': POSTGRES_HOST,
            'port': POSTGRES_PORT,
            'user': POSTGRES_USER,
            'password': POSTGRES_PASSWORD
        }

        self.config['LOGGING'] = {
            'level': 'INFO',
            'file': 'logs/pipeline.log'
        }

        self.config['PATHS'] = {
            'input_dir': 'data/input',
            'output_dir': 'data/output',
            'encoding': 'utf-8'
        }

        self.config['PIPELINE'] = {
            'source': 'csv',
            'quality_check': 'true',
            'stage_source': 'true',
            'write_reports': 'true'
        }

        self.config['REPORTS'] = {
            'top_types_by_quantity': '5',
            'top_types_by_revenue': '3',
            'top_per_category': '3',
            'fill_missing_hours': 'false'
        }

    def _setup_logging(self):
        """Configure logging based on settings."""
        log_config = self.config['LOGGING']
        log_level = getattr(logging, log_config.get('level', 'INFO').upper())
        log_file = log_config.get('file', 'logs/pipeline.log')

        # Create directory for log file if it doesn't exist
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.FileHandler(log_file),
                logging.StreamHandler()
            ]
        )

    def get_database_config(self):
        """
        Get database configuration.
        """
        return {
            'type': self.config['DATABASE'].get('type'),
            'name': self.config['DATABASE'].get('name'),
            'host': self.config['DATABASE'].get('host'),
            'port': self.config['DATABASE'].get('port'),
            'user': self.config['DATABASE'].get('user'),
            'password': self.config['DATABASE'].get('password')
        }

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

        The directory is created on first use.
        """
        output_dir = self.config['PATHS'].get('output_dir', 'data/output')

        if not os.path.exists(output_dir):
            os.makedirs(output_dir)

        if filename:
            return os.path.join(output_dir, filename)
        return output_dir

    def get_input_encoding(self):
        return self.config['PATHS'].get('encoding', 'utf-8')

    def get_source(self):
        """
        Get where source tables are read from: 'csv' or 'database'.
        """
        source = self.config['PIPELINE'].get('source', 'csv').strip().lower()
        if source not in SOURCES:
            raise ValueError(f"Unsupported pipeline source: {source}")
        return source

    def is_quality_check_enabled(self):
        """
        Check if data quality checks are enabled.
        """
        return self.config['PIPELINE'].getboolean('quality_check', True)

    def is_staging_enabled(self):
        """
        Check if CSV source tables should be staged into the database.
        """
        return self.config['PIPELINE'].getboolean('stage_source', True)

    def is_report_writing_enabled(self):
        """
        Check if report tables should be written to the database.
        """
        return self.config['PIPELINE'].getboolean('write_reports', True)

    def get_report_settings(self):
        """
        Get limits and options for the report set.
        """
        reports = self.config['REPORTS']
        return {
            'top_types_by_quantity': reports.getint('top_types_by_quantity', 5),
            'top_types_by_revenue': reports.getint('top_types_by_revenue', 3),
            'top_per_category': reports.getint('top_per_category', 3),
            'fill_missing_hours': reports.getboolean('fill_missing_hours', False)
        }
