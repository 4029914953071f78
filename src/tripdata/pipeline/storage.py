# ========================
# src/tripdata/pipeline/storage.py
# ========================

"""
Data Storage Module

Writes the cleaned trip table and the summary tables to flat files.
Every file is written next to its destination first and then moved into
place, so an interrupted run never leaves a half-written output behind.
Inside output_set() the whole set of files is moved into place together.
"""

import csv
import os
import json
import logging
import tempfile
from contextlib import contextmanager
from typing import Dict, List, Any, Optional
from pathlib import Path

import pandas as pd

from .ingestion import TRIP_COLUMNS
from .derivation import DERIVED_COLUMNS
from ..utils.config import Config

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = TRIP_COLUMNS + DERIVED_COLUMNS

class TripDataSaver:
    """
    Saves the cleaned trip table and the TripAggregator results.
    """

    def __init__(self, output_dir: str = "data/processed", config: Optional[Config] = None):
        """
        Initialize the data saver.

        Args:
            output_dir (str): Directory to save output files
            config (Config): Supplies the timestamp format used in the export
        """
        self.config = config or Config()
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._staged = None
        logger.info(f"TripDataSaver initialized with output directory: {self.output_dir}")

    @contextmanager
    def output_set(self):
        """
        Publish every file written inside the block together.

        Files are kept as temporary files until the block ends without an
        error and only then moved into place. If anything fails, the
        temporary files are removed and the previous outputs stay as they were.
        """
        self._staged = []
        try:
            yield self
            for tmp_path, file_path in self._staged:
                os.replace(tmp_path, file_path)
            logger.info(f"Published {len(self._staged)} output files to {self.output_dir}")
        finally:
            for tmp_path, _ in self._staged:
                if tmp_path.exists():
                    tmp_path.unlink()
            self._staged = None

    @contextmanager
    def _atomic_write(self, file_path: Path):
        """Yield a temporary path that replaces file_path only on success."""
        fd, tmp_name = tempfile.mkstemp(prefix=f".{file_path.name}.", suffix=".tmp", dir=self.output_dir)
        os.close(fd)
        tmp_path = Path(tmp_name)
        staged = False
        try:
            yield tmp_path
            if self._staged is not None:
                self._staged.append((tmp_path, file_path))
                staged = True
            else:
                os.replace(tmp_path, file_path)
        finally:
            if not staged and tmp_path.exists():
                tmp_path.unlink()

    def save_cleaned_trips(self, trips: pd.DataFrame) -> str:
        """
        Export the cleaned trip table.

        The header is the trip schema followed by ride_length, date and
        day_of_week. Output is byte-identical for identical input.

        Args:
            trips (pd.DataFrame): The cleaned trip table

        Returns:
            str: Path of the written file
        """
        file_path = self.output_dir / "cleaned_trips.csv"

        with self._atomic_write(file_path) as tmp_path:
            trips[EXPORT_COLUMNS].to_csv(
                tmp_path,
                index=False,
                date_format=self.config.EXPORT_TIMESTAMP_FORMAT,
                lineterminator='\n',
                encoding='utf-8',
            )

        logger.info(f"Saved {len(trips):,} cleaned trips to {file_path}")
        return str(file_path)

    def save_all_data(self, aggregator) -> Dict[str, str]:
        """
        Save all aggregated data to files.

        Args:
            aggregator: TripAggregator instance with aggregated data

        Returns:
            dict: Mapping of data type to saved file path
        """
        saved_files = {}

        try:
            saved_files['ride_length_by_rider_type'] = self.save_rider_type_summary(aggregator.rider_type_summary)
            saved_files['ride_length_by_weekday'] = self.save_weekday_summary(aggregator.weekday_summary)
            saved_files['rides_by_month'] = self.save_monthly_rides(aggregator.monthly_rides)
            saved_files['vehicle_mix'] = self.save_vehicle_mix(aggregator.vehicle_counts)
            saved_files['top_start_stations'] = self.save_top_stations(aggregator.top_stations)

            logger.info(f"All summary tables saved to {len(saved_files)} files")
            return saved_files

        except Exception as e:
            logger.error(f"Error saving data: {e}")
            raise

    def save_rider_type_summary(self, data: Dict) -> str:
        """Save ride length statistics per rider type."""
        file_path = self.output_dir / "ride_length_by_rider_type.csv"
        headers = ['member_casual', 'count', 'mean', 'median', 'min', 'max']
        rows = [{'member_casual': rider, **stats} for rider, stats in data.items()]
        self._write_csv(file_path, headers, rows)
        return str(file_path)

    def save_weekday_summary(self, data: Dict) -> str:
        """Save ride length statistics per rider type and weekday (Sunday first)."""
        file_path = self.output_dir / "ride_length_by_weekday.csv"
        headers = ['member_casual', 'day_of_week', 'count', 'mean', 'median', 'min', 'max']
        rows = [
            {'member_casual': rider, 'day_of_week': weekday, **stats}
            for (rider, weekday), stats in data.items()
        ]
        self._write_csv(file_path, headers, rows)
        return str(file_path)

    def save_monthly_rides(self, data: Dict) -> str:
        """Save ride counts per rider type and month."""
        file_path = self.output_dir / "rides_by_month.csv"
        headers = ['member_casual', 'month', 'rides']
        rows = [
            {'member_casual': rider, 'month': month, 'rides': rides}
            for (rider, month), rides in data.items()
        ]
        self._write_csv(file_path, headers, rows)
        return str(file_path)

    def save_vehicle_mix(self, data: Dict) -> str:
        """Save ride counts per rider type and rideable type."""
        file_path = self.output_dir / "vehicle_mix.csv"
        headers = ['member_casual', 'rideable_type', 'rides']
        rows = [
            {'member_casual': rider, 'rideable_type': vehicle, 'rides': rides}
            for (rider, vehicle), rides in data.items()
        ]
        self._write_csv(file_path, headers, rows)
        return str(file_path)

    def save_top_stations(self, data: Dict) -> str:
        """Save the most used start stations per rider type."""
        file_path = self.output_dir / "top_start_stations.csv"
        headers = ['member_casual', 'rank', 'start_station_name', 'rides']
        rows = [
            {'member_casual': rider, 'rank': rank, 'start_station_name': name, 'rides': rides}
            for rider, stations in data.items()
            for rank, (name, rides) in enumerate(stations, start=1)
        ]
        self._write_csv(file_path, headers, rows)
        return str(file_path)

    def save_run_summary(self, summary_data: Dict[str, Any]) -> str:
        """Save load, cleaning and aggregation counts as JSON."""
        file_path = self.output_dir / "run_summary.json"

        with self._atomic_write(file_path) as tmp_path:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(summary_data, f, indent=2, ensure_ascii=False, default=str)

        logger.info(f"Run summary saved to {file_path}")
        return str(file_path)

    def _write_csv(self, file_path: Path, headers: List[str], data_items: List[Dict]) -> None:
        """Write data to CSV file."""
        try:
            with self._atomic_write(file_path) as tmp_path:
                with open(tmp_path, 'w', newline='', encoding='utf-8') as f:
                    writer = csv.DictWriter(f, fieldnames=headers, lineterminator='\n')
                    writer.writeheader()
                    writer.writerows(data_items)

            logger.info(f"Saved {len(data_items)} records to {file_path}")

        except Exception as e:
            logger.error(f"Error writing CSV file {file_path}: {e}")
            raise

    def create_data_dictionary(self) -> str:
        """Create a data dictionary explaining all output files."""
        file_path = self.output_dir / "DATA_DICTIONARY.md"

        content = """# Data Dictionary

This document describes the structure and content of all generated data files.

## Files Overview

### 1. cleaned_trips.csv
One row per trip that passed every cleaning rule, in original load order.

| Column | Type | Description |
|--------|------|-------------|
| ride_id | string | Unique trip identifier |
| rideable_type | string | Vehicle type (classic, electric, scooter) |
| started_at | datetime | Trip start, YYYY-MM-DD HH:MM:SS local time |
| ended_at | datetime | Trip end, YYYY-MM-DD HH:MM:SS local time |
| start_station_name | string | Start station |
| start_station_id | string | Start station id (may be empty) |
| end_station_name | string | End station |
| end_station_id | string | End station id (may be empty) |
| start_lat / start_lng | float | Start coordinates |
| end_lat / end_lng | float | End coordinates |
| member_casual | string | Rider type (member or casual) |
| ride_length | float | Seconds between started_at and ended_at |
| date | date | Calendar date of started_at |
| day_of_week | string | Weekday name of date |

### 2. ride_length_by_rider_type.csv
count, mean, median, min and max of ride_length (seconds) per rider type.

### 3. ride_length_by_weekday.csv
The same statistics per rider type and weekday, Sunday through Saturday.

### 4. rides_by_month.csv
Number of rides per rider type and month (YYYY-MM of started_at).

### 5. vehicle_mix.csv
Number of rides per rider type and rideable type.

### 6. top_start_stations.csv
Most used start stations per rider type, ranked by rides (ties by name).

### 7. run_summary.json
Rows loaded per file, rows dropped by each cleaning rule, rows kept and
aggregation counts for the run.

## Data Quality Notes

- Duplicate ride_id values keep their first occurrence in load order
- Rows missing any required field are excluded
- Trips with ride_length <= 0 are excluded
- Placeholder stations and station names of one character or less are excluded
- Start and end coordinates outside the configured bounding box are excluded
"""

        with self._atomic_write(file_path) as tmp_path:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write(content)

        logger.info(f"Data dictionary created at {file_path}")
        return str(file_path)
