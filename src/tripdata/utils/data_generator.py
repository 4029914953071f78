# ========================
# src/tripdata/utils/data_generator.py
# ========================

"""
Data Generation Utilities

Writes synthetic monthly trip files in the bike-share export schema, with
controlled error injection so every cleaning rule has something to drop.
"""

import csv
import random
import logging
from datetime import datetime, timedelta
from typing import List, Dict, Any, Optional
from pathlib import Path

from ..pipeline.ingestion import TRIP_COLUMNS, monthly_file_paths

logger = logging.getLogger(__name__)

class TripDataGenerator:
    """
    Synthetic trip data generator for demos and scale tests.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize data generator.

        Args:
            seed (int): Random seed for reproducible data generation
        """
        self.random = random.Random(seed)
        self._initialize_data_patterns()
        logger.info(f"TripDataGenerator initialized with seed: {seed}")

    def _initialize_data_patterns(self) -> None:
        """Initialize stations and rider behaviour patterns."""
        # Downtown Chicago stations (name, id, lat, lng)
        self.stations = [
            ("Streeter Dr & Grand Ave", "13022", 41.892278, -87.612043),
            ("DuSable Lake Shore Dr & Monroe St", "13300", 41.880958, -87.616743),
            ("Michigan Ave & Oak St", "13042", 41.900960, -87.623777),
            ("Kingsbury St & Kinzie St", "KA1503000043", 41.889177, -87.638506),
            ("Clark St & Elm St", "TA1307000039", 41.902973, -87.631280),
            ("Wells St & Concord Ln", "TA1308000050", 41.912133, -87.634656),
            ("Clinton St & Washington Blvd", "WL-012", 41.883380, -87.641170),
            ("Theater on the Lake", "TA1308000001", 41.926277, -87.630834),
            ("Wabash Ave & Grand Ave", "TA1307000117", 41.891466, -87.626761),
            ("University Ave & 57th St", "KA1503000071", 41.791478, -87.599861),
            ("Ellis Ave & 60th St", "KA1503000014", 41.785097, -87.601073),
            ("Shedd Aquarium", "15544", 41.867226, -87.615355),
        ]

        # Rider mix and typical ride lengths in minutes (mean, spread)
        self.rider_types = [
            {"name": "member", "weight": 0.64, "minutes": (12, 8)},
            {"name": "casual", "weight": 0.36, "minutes": (22, 18)},
        ]

        self.rideable_types = [
            {"name": "classic_bike", "weight": 0.5},
            {"name": "electric_bike", "weight": 0.45},
            {"name": "electric_scooter", "weight": 0.05},
        ]

        # Seasonal patterns (month -> demand multiplier)
        self.seasonal_patterns = {
            1: 0.3, 2: 0.35, 3: 0.55, 4: 0.8, 5: 1.1, 6: 1.3,
            7: 1.4, 8: 1.4, 9: 1.2, 10: 0.9, 11: 0.55, 12: 0.35
        }

        self.placeholder_station = ("HQ QR", "Hubbard Bike-checking (LBS-WH-TEST)", 41.889900, -87.680200)

    def generate_year(self,
                      data_dir: str,
                      year: int,
                      rows_per_month: int,
                      error_rate: float = 0.1,
                      suffix: str = '-divvy-tripdata.csv') -> Dict[str, Any]:
        """
        Generate twelve monthly files for a year.

        Monthly row counts follow the seasonal pattern around rows_per_month.

        Args:
            data_dir (str): Output directory
            year (int): Calendar year
            rows_per_month (int): Average rows per file
            error_rate (float): Fraction of records with an injected error
            suffix (str): File name suffix after YYYYMM

        Returns:
            dict: Generation statistics
        """
        logger.info(f"Generating {year} trip files in {data_dir} (~{rows_per_month:,} rows/month)")

        stats = {
            'year': year,
            'total_rows': 0,
            'error_rate': error_rate,
            'records_with_errors': 0,
            'error_types': {},
            'files': []
        }

        for month, path in enumerate(monthly_file_paths(data_dir, year, suffix), start=1):
            num_rows = max(1, int(rows_per_month * self.seasonal_patterns[month]))
            self.generate_month(str(path), year, month, num_rows, error_rate, stats)
            stats['files'].append(str(path))

        stats['error_rate_actual'] = (
            stats['records_with_errors'] / stats['total_rows'] if stats['total_rows'] else 0.0
        )
        logger.info(f"Generated {stats['total_rows']:,} rows, actual error rate {stats['error_rate_actual']:.1%}")
        logger.info(f"Error breakdown: {stats['error_types']}")
        return stats

    def generate_month(self,
                       file_path: str,
                       year: int,
                       month: int,
                       num_rows: int,
                       error_rate: float,
                       stats: Dict[str, Any]) -> None:
        """Write one monthly file, updating stats in place."""
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(TRIP_COLUMNS)

            previous_id = None
            for i in range(num_rows):
                record = self._generate_single_record(year, month, i, error_rate, previous_id, stats)
                previous_id = record[0]
                writer.writerow(record)

        stats['total_rows'] += num_rows
        logger.debug(f"Wrote {num_rows:,} rows to {file_path}")

    def _generate_single_record(self,
                                year: int,
                                month: int,
                                index: int,
                                error_rate: float,
                                previous_id: Optional[str],
                                stats: Dict[str, Any]) -> List[Any]:
        """Generate a single record with potential errors."""
        rng = self.random
        ride_id = f"{rng.getrandbits(64):016X}"

        rider = rng.choices(self.rider_types, weights=[r["weight"] for r in self.rider_types])[0]
        rideable = rng.choices(self.rideable_types, weights=[r["weight"] for r in self.rideable_types])[0]
        start = rng.choice(self.stations)
        end = rng.choice(self.stations)

        days_in_month = ((datetime(year + month // 12, month % 12 + 1, 1)) - datetime(year, month, 1)).days
        started_at = datetime(year, month, 1) + timedelta(
            days=rng.randrange(days_in_month),
            seconds=rng.randrange(24 * 3600)
        )
        mean_minutes, spread = rider["minutes"]
        minutes = max(1.0, rng.gauss(mean_minutes, spread))
        ended_at = started_at + timedelta(seconds=int(minutes * 60))

        record = {
            'ride_id': ride_id,
            'rideable_type': rideable["name"],
            'started_at': started_at.strftime("%Y-%m-%d %H:%M:%S"),
            'ended_at': ended_at.strftime("%Y-%m-%d %H:%M:%S"),
            'start_station_name': start[0],
            'start_station_id': start[1],
            'end_station_name': end[0],
            'end_station_id': end[1],
            'start_lat': round(start[2] + rng.uniform(-0.0005, 0.0005), 6),
            'start_lng': round(start[3] + rng.uniform(-0.0005, 0.0005), 6),
            'end_lat': round(end[2] + rng.uniform(-0.0005, 0.0005), 6),
            'end_lng': round(end[3] + rng.uniform(-0.0005, 0.0005), 6),
            'member_casual': rider["name"],
        }

        if rng.random() < error_rate:
            stats['records_with_errors'] += 1
            self._inject_error(record, previous_id, stats)

        return [record[column] for column in TRIP_COLUMNS]

    def _inject_error(self, record: Dict[str, Any], previous_id: Optional[str], stats: Dict[str, Any]) -> None:
        """Inject one error of a random type into the record."""
        rng = self.random
        error_type = rng.choice([
            'duplicate_ride_id', 'missing_station', 'negative_duration',
            'out_of_bounds', 'placeholder_station', 'bad_timestamp'
        ])

        if error_type == 'duplicate_ride_id' and previous_id is not None:
            record['ride_id'] = previous_id
        elif error_type == 'missing_station':
            record[rng.choice(['start_station_name', 'end_station_name'])] = ''
        elif error_type == 'negative_duration':
            record['started_at'], record['ended_at'] = record['ended_at'], record['started_at']
        elif error_type == 'out_of_bounds':
            # Unresolved geocodes show up as 0.0 coordinates
            record['end_lat'] = 0.0
            record['end_lng'] = 0.0
        elif error_type == 'placeholder_station':
            name, station_id, lat, lng = self.placeholder_station
            record['end_station_name'] = name
            record['end_station_id'] = station_id
            record['end_lat'] = lat
            record['end_lng'] = lng
        elif error_type == 'bad_timestamp':
            record['ended_at'] = 'not a timestamp'
        else:
            # First row of a file has nothing to duplicate
            error_type = 'none'

        self._track_error_type(stats, error_type)

    def _track_error_type(self, stats: Dict[str, Any], error_type: str) -> None:
        """Track error types for statistics."""
        if error_type not in stats['error_types']:
            stats['error_types'][error_type] = 0
        stats['error_types'][error_type] += 1
