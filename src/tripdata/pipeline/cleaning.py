# ========================
# src/tripdata/pipeline/cleaning.py
# ========================

"""
Data Cleaning Module

Drops trip records that break any of the cleaning rules. Rows are never
repaired. Each rule is an independent predicate returning a keep-mask, and
the number of rows each rule removes is kept for the run report.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from ..utils.config import Config

logger = logging.getLogger(__name__)

class TripCleaner:
    """
    Applies the cleaning rules to a derived trip table.
    Duplicate removal runs first so that "first occurrence" always refers
    to the original load order.
    """

    REQUIRED_FIELDS = [
        'ride_id',
        'started_at',
        'ended_at',
        'member_casual',
        'rideable_type',
        'start_station_name',
        'end_station_name',
        'start_lat',
        'start_lng',
        'end_lat',
        'end_lng',
    ]

    STATION_NAME_COLUMNS = ['start_station_name', 'end_station_name']

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize the trip cleaner.

        Args:
            config (Config): Supplies the bounding box, placeholder station
                names, minimum station name length and rider types
        """
        self.config = config or Config()
        self.bounding_box = self.config.bounding_box
        self.placeholder_stations = set(self.config.PLACEHOLDER_STATIONS)
        self.min_station_name_length = self.config.MIN_STATION_NAME_LENGTH
        self.rider_types = list(self.config.RIDER_TYPES)

        self._reset_statistics()
        logger.info(
            f"TripCleaner initialized with bounding box {self.bounding_box}, "
            f"placeholder stations {sorted(self.placeholder_stations)}"
        )

    def _reset_statistics(self) -> None:
        self.records_processed = 0
        self.records_dropped = 0
        self.dropped_by_filter: Dict[str, int] = {}

    def _filters(self) -> List[Tuple[str, Callable[[pd.DataFrame], pd.Series]]]:
        """Cleaning rules in the order they are applied."""
        return [
            ('duplicate_ride_id', self._keep_first_ride_id),
            ('missing_required_field', self._keep_complete),
            ('invalid_rider_type', self._keep_known_rider_type),
            ('non_positive_ride_length', self._keep_positive_ride_length),
            ('placeholder_station', self._keep_real_stations),
            ('short_station_name', self._keep_named_stations),
            ('out_of_bounds_coordinates', self._keep_in_bounds),
        ]

    def clean(self, trips: pd.DataFrame) -> pd.DataFrame:
        """
        Return the rows of the table that satisfy every cleaning rule.

        Args:
            trips (pd.DataFrame): Trip table with the derived columns present

        Returns:
            pd.DataFrame: Surviving rows in their original order, index reset
        """
        required = self.REQUIRED_FIELDS + ['ride_length']
        absent = [column for column in required if column not in trips.columns]
        if absent:
            raise ValueError(f"Trip table is missing columns required for cleaning: {absent}")

        self._reset_statistics()
        self.records_processed = len(trips)

        cleaned = trips
        for name, keep_rows in self._filters():
            keep = keep_rows(cleaned)
            dropped = int((~keep).sum())
            self.dropped_by_filter[name] = dropped
            if dropped:
                cleaned = cleaned[keep]
            logger.info(f"Filter '{name}' dropped {dropped:,} rows, {len(cleaned):,} remain")

        self.records_dropped = self.records_processed - len(cleaned)
        return cleaned.reset_index(drop=True)

    def _keep_first_ride_id(self, trips: pd.DataFrame) -> pd.Series:
        return ~trips.duplicated(subset='ride_id', keep='first')

    def _keep_complete(self, trips: pd.DataFrame) -> pd.Series:
        return trips[self.REQUIRED_FIELDS + ['ride_length']].notna().all(axis=1)

    def _keep_known_rider_type(self, trips: pd.DataFrame) -> pd.Series:
        return trips['member_casual'].isin(self.rider_types)

    def _keep_positive_ride_length(self, trips: pd.DataFrame) -> pd.Series:
        return trips['ride_length'] > 0

    def _keep_real_stations(self, trips: pd.DataFrame) -> pd.Series:
        keep = pd.Series(True, index=trips.index)
        for column in self.STATION_NAME_COLUMNS:
            keep &= ~self._stripped(trips[column]).isin(self.placeholder_stations)
        return keep

    def _keep_named_stations(self, trips: pd.DataFrame) -> pd.Series:
        keep = pd.Series(True, index=trips.index)
        for column in self.STATION_NAME_COLUMNS:
            keep &= self._stripped(trips[column]).str.len() > self.min_station_name_length
        return keep

    def _keep_in_bounds(self, trips: pd.DataFrame) -> pd.Series:
        box = self.bounding_box
        keep = pd.Series(True, index=trips.index)
        for column in ('start_lat', 'end_lat'):
            keep &= trips[column].between(box['lat_min'], box['lat_max'], inclusive='both')
        for column in ('start_lng', 'end_lng'):
            keep &= trips[column].between(box['lng_min'], box['lng_max'], inclusive='both')
        return keep

    @staticmethod
    def _stripped(values: pd.Series) -> pd.Series:
        """Station names with surrounding whitespace removed."""
        return values.astype(str).str.strip()

    def get_statistics(self) -> Dict[str, object]:
        """Get cleaning statistics."""
        return {
            'records_processed': self.records_processed,
            'records_dropped': self.records_dropped,
            'records_cleaned': self.records_processed - self.records_dropped,
            'dropped_by_filter': dict(self.dropped_by_filter),
            'success_rate': (self.records_processed - self.records_dropped) / self.records_processed * 100 if self.records_processed > 0 else 0
        }
