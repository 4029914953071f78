# ========================
# src/tripdata/pipeline/transformation.py
# ========================

"""
Data Transformation Module

Groups the cleaned trip table by rider type (and weekday, month, vehicle
type or start station) to compare members with casual riders.
"""

import logging
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ..utils.config import Config

logger = logging.getLogger(__name__)

# Reports list weekdays Sunday first.
WEEKDAY_ORDER = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']

RIDE_LENGTH_STATS = ['count', 'mean', 'median', 'min', 'max']


class TripAggregator:
    """
    Computes the rider-segment summary tables from a cleaned trip table.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize the trip aggregator.

        Args:
            config (Config): Supplies rider type order and the top stations limit
        """
        self.config = config or Config()
        self.rider_types = list(self.config.RIDER_TYPES)
        self.top_stations_limit = self.config.TOP_STATIONS_LIMIT

        self._reset_aggregations()
        logger.info(f"TripAggregator initialized with rider types {self.rider_types}")

    def _reset_aggregations(self):
        """Reset all aggregation data structures."""
        self.rider_type_summary: Dict[str, Dict[str, float]] = {}
        self.weekday_summary: Dict[Tuple[str, str], Dict[str, float]] = {}
        self.monthly_rides: Dict[Tuple[str, str], int] = {}
        self.vehicle_counts: Dict[Tuple[str, str], int] = {}
        self.top_stations: Dict[str, List[Tuple[str, int]]] = {}
        self.records_processed = 0

    def aggregate(self, trips: pd.DataFrame) -> None:
        """
        Compute every summary view and keep it on the instance.

        Args:
            trips (pd.DataFrame): The cleaned trip table
        """
        self._reset_aggregations()
        self.records_processed = len(trips)

        self.rider_type_summary = self.summarize_by_rider_type(trips)
        self.weekday_summary = self.summarize_by_rider_and_weekday(trips)
        self.monthly_rides = self.rides_by_month(trips)
        self.vehicle_counts = self.vehicle_mix(trips)
        self.top_stations = self.top_start_stations(trips)

        logger.info(f"Aggregation complete. Processed {self.records_processed:,} records")
        self._log_summary_statistics()

    def summarize_by_rider_type(self, trips: pd.DataFrame) -> Dict[str, Dict[str, float]]:
        """
        Ride length statistics per rider type.

        Returns:
            dict: rider type -> {count, mean, median, min, max} of ride_length
        """
        grouped = trips.groupby('member_casual', sort=False)['ride_length'].agg(RIDE_LENGTH_STATS)
        return {
            rider: self._stats_record(grouped.loc[rider])
            for rider in self.rider_types
            if rider in grouped.index
        }

    def summarize_by_rider_and_weekday(self, trips: pd.DataFrame) -> Dict[Tuple[str, str], Dict[str, float]]:
        """
        Ride length statistics per rider type and weekday.

        Keys are ordered by rider type, then Sunday through Saturday.

        Returns:
            dict: (rider type, weekday) -> {count, mean, median, min, max}
        """
        grouped = trips.groupby(['member_casual', 'day_of_week'], sort=False)['ride_length'].agg(RIDE_LENGTH_STATS)
        return {
            (rider, weekday): self._stats_record(grouped.loc[(rider, weekday)])
            for rider in self.rider_types
            for weekday in WEEKDAY_ORDER
            if (rider, weekday) in grouped.index
        }

    def rides_by_month(self, trips: pd.DataFrame) -> Dict[Tuple[str, str], int]:
        """Ride counts per rider type and YYYY-MM month of the start time."""
        months = trips['started_at'].dt.strftime('%Y-%m')
        counts = trips.groupby([trips['member_casual'], months]).size()
        return {
            (rider, month): int(counts.loc[(rider, month)])
            for rider in self.rider_types
            for month in sorted(months.unique())
            if (rider, month) in counts.index
        }

    def vehicle_mix(self, trips: pd.DataFrame) -> Dict[Tuple[str, str], int]:
        """Ride counts per rider type and rideable type."""
        counts = trips.groupby(['member_casual', 'rideable_type']).size()
        return {
            (rider, vehicle): int(counts.loc[(rider, vehicle)])
            for rider in self.rider_types
            for vehicle in sorted(trips['rideable_type'].unique())
            if (rider, vehicle) in counts.index
        }

    def top_start_stations(self, trips: pd.DataFrame) -> Dict[str, List[Tuple[str, int]]]:
        """
        Most used start stations for each rider type.
        Ties are broken alphabetically so the ranking is stable.
        """
        top = {}
        for rider in self.rider_types:
            stations = trips.loc[trips['member_casual'] == rider, 'start_station_name']
            if stations.empty:
                continue
            counts = stations.value_counts()
            ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
            top[rider] = [(name, int(rides)) for name, rides in ranked[:self.top_stations_limit]]
        return top

    @staticmethod
    def _stats_record(row: pd.Series) -> Dict[str, float]:
        """Convert one aggregated row into a plain dict of python numbers."""
        return {
            'count': int(row['count']),
            'mean': float(row['mean']),
            'median': float(row['median']),
            'min': float(row['min']),
            'max': float(row['max']),
        }

    def _log_summary_statistics(self) -> None:
        """Log the headline comparison between rider types."""
        for rider, stats in self.rider_type_summary.items():
            logger.info(
                f"{rider}: {stats['count']:,} rides, mean {stats['mean']:.1f}s, "
                f"median {stats['median']:.1f}s"
            )
        logger.info(f"Weekday groups: {len(self.weekday_summary)}")
        logger.info(f"Month groups: {len(self.monthly_rides)}")

    def get_aggregation_summary(self) -> Dict[str, object]:
        """Get a summary of all aggregations."""
        return {
            'records_processed': self.records_processed,
            'rider_types': list(self.rider_type_summary),
            'rides_per_rider_type': {
                rider: stats['count'] for rider, stats in self.rider_type_summary.items()
            },
            'weekday_groups': len(self.weekday_summary),
            'month_groups': len(self.monthly_rides),
            'vehicle_groups': len(self.vehicle_counts),
            'top_stations_per_rider_type': {
                rider: len(stations) for rider, stations in self.top_stations.items()
            }
        }
