# ========================
# tests/test_config.py
# ========================

import unittest
import tempfile
import os
import sys
from unittest import mock

# Add the project src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from tripdata.utils.config import Config


class TestConfig(unittest.TestCase):

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            config = Config()

        self.assertEqual(config.bounding_box, {
            'lat_min': 40.73, 'lat_max': 42.67, 'lng_min': -88.94, 'lng_max': -86.93
        })
        self.assertEqual(config.PLACEHOLDER_STATIONS, ('HQ QR',))
        self.assertEqual(config.MIN_STATION_NAME_LENGTH, 1)
        self.assertEqual(config.RIDER_TYPES, ('member', 'casual'))
        self.assertEqual(config.FILE_SUFFIX, '-divvy-tripdata.csv')
        self.assertTrue(all(config.validate_config().values()))

    def test_environment_overrides(self):
        env = {
            'LAT_MIN': '40.3',
            'LNG_MAX': '-73.5',
            'PLACEHOLDER_STATIONS': 'HQ QR, Bronx WH station ,',
            'TRIP_YEAR': '2023',
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = Config()

        self.assertEqual(config.LAT_MIN, 40.3)
        self.assertEqual(config.LNG_MAX, -73.5)
        self.assertEqual(config.PLACEHOLDER_STATIONS, ('HQ QR', 'Bronx WH station'))
        self.assertEqual(config.DEFAULT_YEAR, 2023)

    def test_dict_overrides(self):
        config = Config({'lat_max': 41.0, 'rider_types': ['casual', 'member'], 'unknown_key': 1})

        self.assertEqual(config.LAT_MAX, 41.0)
        self.assertEqual(config.RIDER_TYPES, ('casual', 'member'))
        self.assertFalse(hasattr(config, 'UNKNOWN_KEY'))

    def test_validation_failures(self):
        config = Config({'lat_min': 43.0, 'top_stations_limit': 0, 'log_level': 'LOUD'})
        validations = config.validate_config()

        self.assertFalse(validations['latitude_range'])
        self.assertFalse(validations['top_stations_limit'])
        self.assertFalse(validations['log_level'])
        self.assertTrue(validations['longitude_range'])

    def test_save_and_load(self):
        config = Config({'placeholder_stations': ['Depot'], 'lng_min': -88.0})

        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, 'config.json')
            config.save_to_file(path)
            loaded = Config.load_from_file(path)

        self.assertEqual(loaded.PLACEHOLDER_STATIONS, ('Depot',))
        self.assertEqual(loaded.LNG_MIN, -88.0)
        self.assertEqual(loaded.to_dict(), config.to_dict())

if __name__ == '__main__':
    unittest.main()
