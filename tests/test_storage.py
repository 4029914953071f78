# ========================
# tests/test_storage.py
# ========================

import unittest
import tempfile
import os
import sys
import csv
import json
from pathlib import Path

import pandas as pd

# Add the project src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from tripdata.pipeline.ingestion import TRIP_COLUMNS
from tripdata.pipeline.derivation import derive_fields
from tripdata.pipeline.cleaning import TripCleaner
from tripdata.pipeline.transformation import TripAggregator
from tripdata.pipeline.storage import TripDataSaver, EXPORT_COLUMNS
from tripdata.utils.config import Config


def cleaned_trips():
    raw = pd.DataFrame([
        {
            'ride_id': 'A1', 'rideable_type': 'classic_bike',
            'started_at': '2024-01-07 08:00:00', 'ended_at': '2024-01-07 08:30:00',
            'start_station_name': 'Clark St & Elm St', 'start_station_id': '13022',
            'end_station_name': 'Wells St & Concord Ln', 'end_station_id': None,
            'start_lat': 41.902973, 'start_lng': -87.63128, 'end_lat': 41.912133, 'end_lng': -87.634656,
            'member_casual': 'member',
        },
        {
            'ride_id': 'B2', 'rideable_type': 'electric_bike',
            'started_at': '2024-06-15 17:45:10', 'ended_at': '2024-06-15 18:05:40',
            'start_station_name': 'Shedd Aquarium', 'start_station_id': '15544',
            'end_station_name': 'Theater on the Lake', 'end_station_id': 'TA1308000001',
            'start_lat': 41.867226, 'start_lng': -87.615355, 'end_lat': 41.926277, 'end_lng': -87.630834,
            'member_casual': 'casual',
        },
    ], columns=TRIP_COLUMNS)
    return TripCleaner(Config()).clean(derive_fields(raw))


class TestTripDataSaver(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.output_dir = Path(self.temp_dir.name) / 'out'
        self.saver = TripDataSaver(str(self.output_dir), Config())

    def tearDown(self):
        self.temp_dir.cleanup()

    def read_rows(self, path):
        with open(path, newline='', encoding='utf-8') as f:
            return list(csv.DictReader(f))

    def test_cleaned_export_schema_and_values(self):
        path = self.saver.save_cleaned_trips(cleaned_trips())

        with open(path, newline='', encoding='utf-8') as f:
            header = next(csv.reader(f))
        self.assertEqual(header, TRIP_COLUMNS + ['ride_length', 'date', 'day_of_week'])
        self.assertEqual(header, EXPORT_COLUMNS)

        rows = self.read_rows(path)
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]['ride_id'], 'A1')
        self.assertEqual(rows[0]['started_at'], '2024-01-07 08:00:00')
        self.assertEqual(rows[0]['end_station_id'], '')
        self.assertEqual(float(rows[0]['ride_length']), 1800.0)
        self.assertEqual(rows[0]['date'], '2024-01-07')
        self.assertEqual(rows[0]['day_of_week'], 'Sunday')
        self.assertEqual(rows[1]['start_station_id'], '15544')
        self.assertEqual(float(rows[1]['ride_length']), 1230.0)
        self.assertEqual(rows[1]['day_of_week'], 'Saturday')

    def test_cleaned_export_is_byte_stable(self):
        first = Path(self.saver.save_cleaned_trips(cleaned_trips())).read_bytes()
        other = TripDataSaver(str(Path(self.temp_dir.name) / 'again'), Config())
        second = Path(other.save_cleaned_trips(cleaned_trips())).read_bytes()

        self.assertEqual(first, second)
        self.assertNotIn(b'\r\n', first)

    def test_failed_export_leaves_no_file(self):
        broken = cleaned_trips().drop(columns=['day_of_week'])

        with self.assertRaises(KeyError):
            self.saver.save_cleaned_trips(broken)

        self.assertEqual(list(self.output_dir.iterdir()), [])

    def test_failed_export_keeps_previous_file(self):
        path = Path(self.saver.save_cleaned_trips(cleaned_trips()))
        before = path.read_bytes()

        with self.assertRaises(KeyError):
            self.saver.save_cleaned_trips(cleaned_trips().drop(columns=['date']))

        self.assertEqual(path.read_bytes(), before)
        self.assertEqual([p.name for p in self.output_dir.iterdir()], ['cleaned_trips.csv'])

    def test_output_set_publishes_files_together(self):
        trips = cleaned_trips()

        with self.saver.output_set():
            cleaned_path = Path(self.saver.save_cleaned_trips(trips))
            summary_path = Path(self.saver.save_run_summary({'rows': len(trips)}))
            self.assertFalse(cleaned_path.exists())

        self.assertTrue(cleaned_path.is_file())
        self.assertTrue(summary_path.is_file())
        self.assertEqual(sorted(p.name for p in self.output_dir.iterdir()), ['cleaned_trips.csv', 'run_summary.json'])

    def test_failed_output_set_keeps_previous_outputs(self):
        path = Path(self.saver.save_cleaned_trips(cleaned_trips()))
        before = path.read_bytes()

        with self.assertRaises(KeyError):
            with self.saver.output_set():
                self.saver.save_cleaned_trips(cleaned_trips().iloc[:1])
                self.saver.save_run_summary({'rows': 1})
                self.saver.save_cleaned_trips(cleaned_trips().drop(columns=['date']))

        self.assertEqual(path.read_bytes(), before)
        self.assertEqual([p.name for p in self.output_dir.iterdir()], ['cleaned_trips.csv'])

    def test_summary_tables(self):
        aggregator = TripAggregator(Config())
        aggregator.aggregate(cleaned_trips())

        saved = self.saver.save_all_data(aggregator)

        self.assertEqual(set(saved), {
            'ride_length_by_rider_type',
            'ride_length_by_weekday',
            'rides_by_month',
            'vehicle_mix',
            'top_start_stations',
        })
        rider_rows = self.read_rows(saved['ride_length_by_rider_type'])
        self.assertEqual([row['member_casual'] for row in rider_rows], ['member', 'casual'])
        self.assertEqual(rider_rows[1]['count'], '1')
        self.assertEqual(float(rider_rows[1]['median']), 1230.0)

        weekday_rows = self.read_rows(saved['ride_length_by_weekday'])
        self.assertEqual(
            [(row['member_casual'], row['day_of_week']) for row in weekday_rows],
            [('member', 'Sunday'), ('casual', 'Saturday')]
        )

        station_rows = self.read_rows(saved['top_start_stations'])
        self.assertEqual(station_rows[0]['rank'], '1')
        self.assertEqual(station_rows[0]['start_station_name'], 'Clark St & Elm St')

    def test_run_summary_and_dictionary(self):
        summary_path = self.saver.save_run_summary({'data_quality_stats': {'records_cleaned': 2}})
        dictionary_path = self.saver.create_data_dictionary()

        with open(summary_path, encoding='utf-8') as f:
            self.assertEqual(json.load(f)['data_quality_stats']['records_cleaned'], 2)
        self.assertIn('cleaned_trips.csv', Path(dictionary_path).read_text(encoding='utf-8'))

if __name__ == '__main__':
    unittest.main()
