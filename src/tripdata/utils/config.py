# ========================
# src/tripdata/utils/config.py
# ========================

"""
Configuration Management

Centralized configuration for the trip data pipeline with environment support.
Cleaning thresholds live here so the same pipeline can be pointed at other
regions or years without touching the cleaning code.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional, Tuple


def _split_env_list(value: str) -> Tuple[str, ...]:
    """Split a comma separated environment value into a tuple of stripped items."""
    return tuple(item.strip() for item in value.split(',') if item.strip())


class Config:
    """
    Configuration class for the trip data pipeline.
    Supports environment variables and default values.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_dict (dict): Optional configuration overrides
        """
        # Data Processing Configuration
        self.DEFAULT_CHUNK_SIZE = int(os.getenv('PIPELINE_CHUNK_SIZE', '500000'))

        # File Paths
        self.DEFAULT_DATA_DIR = os.getenv('TRIP_DATA_DIR', 'data/raw')
        self.DEFAULT_OUTPUT_DIR = os.getenv('TRIP_OUTPUT_DIR', 'data/processed')
        self.DEFAULT_YEAR = int(os.getenv('TRIP_YEAR', '2024'))
        self.FILE_SUFFIX = os.getenv('TRIP_FILE_SUFFIX', '-divvy-tripdata.csv')

        # Timestamp handling
        self.TIMESTAMP_FORMAT = os.getenv('TIMESTAMP_FORMAT', 'ISO8601')
        self.EXPORT_TIMESTAMP_FORMAT = os.getenv('EXPORT_TIMESTAMP_FORMAT', '%Y-%m-%d %H:%M:%S')

        # Cleaning policy: bounding box around the service area
        self.LAT_MIN = float(os.getenv('LAT_MIN', '40.73'))
        self.LAT_MAX = float(os.getenv('LAT_MAX', '42.67'))
        self.LNG_MIN = float(os.getenv('LNG_MIN', '-88.94'))
        self.LNG_MAX = float(os.getenv('LNG_MAX', '-86.93'))

        # Cleaning policy: station names
        self.PLACEHOLDER_STATIONS = _split_env_list(os.getenv('PLACEHOLDER_STATIONS', 'HQ QR'))
        self.MIN_STATION_NAME_LENGTH = int(os.getenv('MIN_STATION_NAME_LENGTH', '1'))

        # Rider segments, in reporting order
        self.RIDER_TYPES = _split_env_list(os.getenv('RIDER_TYPES', 'member,casual'))

        # Aggregation Settings
        self.TOP_STATIONS_LIMIT = int(os.getenv('TOP_STATIONS_LIMIT', '10'))

        # Data Generation Settings
        self.SAMPLE_ROWS_PER_MONTH = int(os.getenv('SAMPLE_ROWS_PER_MONTH', '5000'))
        self.SAMPLE_ERROR_RATE = float(os.getenv('SAMPLE_ERROR_RATE', '0.1'))

        # Logging Configuration
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
        self.LOG_DIR = os.getenv('LOG_DIR', 'logs')

        # Data Quality Settings
        self.MIN_DATA_QUALITY_RATE = float(os.getenv('MIN_DATA_QUALITY_RATE', '0.4'))  # 40%
        self.MIN_AVAILABLE_MEMORY_GB = float(os.getenv('MIN_AVAILABLE_MEMORY_GB', '2.0'))

        # Override with provided config
        if config_dict:
            self._update_from_dict(config_dict)

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        for key, value in config_dict.items():
            if hasattr(self, key.upper()):
                if key.upper() in ('PLACEHOLDER_STATIONS', 'RIDER_TYPES'):
                    value = tuple(value)
                setattr(self, key.upper(), value)

    @property
    def bounding_box(self) -> Dict[str, float]:
        """Inclusive latitude/longitude limits used by the cleaner."""
        return {
            'lat_min': self.LAT_MIN,
            'lat_max': self.LAT_MAX,
            'lng_min': self.LNG_MIN,
            'lng_max': self.LNG_MAX,
        }

    def get_data_paths(self) -> Dict[str, Path]:
        """Get all configured data paths as Path objects."""
        return {
            'data_dir': Path(self.DEFAULT_DATA_DIR),
            'output_dir': Path(self.DEFAULT_OUTPUT_DIR),
            'logs_dir': Path(self.LOG_DIR)
        }

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        paths = self.get_data_paths()
        for path_name, path in paths.items():
            if path_name.endswith('_dir'):
                path.mkdir(parents=True, exist_ok=True)

    def validate_config(self) -> Dict[str, bool]:
        """
        Validate configuration values.

        Returns:
            dict: Validation results for each setting
        """
        validations = {}

        # Validate numeric ranges
        validations['chunk_size'] = self.DEFAULT_CHUNK_SIZE > 0
        validations['year'] = 1900 <= self.DEFAULT_YEAR <= 9999
        validations['latitude_range'] = -90.0 <= self.LAT_MIN <= self.LAT_MAX <= 90.0
        validations['longitude_range'] = -180.0 <= self.LNG_MIN <= self.LNG_MAX <= 180.0
        validations['station_name_length'] = self.MIN_STATION_NAME_LENGTH >= 0
        validations['rider_types'] = len(self.RIDER_TYPES) > 0
        validations['top_stations_limit'] = self.TOP_STATIONS_LIMIT > 0
        validations['sample_rows'] = self.SAMPLE_ROWS_PER_MONTH > 0
        validations['sample_error_rate'] = 0.0 <= self.SAMPLE_ERROR_RATE <= 1.0
        validations['quality_rate'] = 0.0 <= self.MIN_DATA_QUALITY_RATE <= 1.0

        # Validate log level
        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        validations['log_level'] = self.LOG_LEVEL.upper() in valid_log_levels

        return validations

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            attr: getattr(self, attr)
            for attr in dir(self)
            if attr.isupper() and not callable(getattr(self, attr))
        }

    def save_to_file(self, file_path: str) -> None:
        """Save configuration to JSON file."""
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(file_path, 'r') as f:
            config_dict = json.load(f)
        return cls(config_dict)

    def __str__(self) -> str:
        """String representation of configuration."""
        lines = ["Configuration Settings:"]
        config_dict = self.to_dict()
        for key, value in sorted(config_dict.items()):
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)
