# ========================
# src/tripdata/pipeline/derivation.py
# ========================

"""
Field Derivation Module

Adds ride_length, date and day_of_week to the raw trip table.
Timestamps are taken as already being in local time.
"""

import logging

import pandas as pd

logger = logging.getLogger(__name__)

DERIVED_COLUMNS = ['ride_length', 'date', 'day_of_week']

# A trailing Z or +HH:MM / -HHMM offset
UTC_OFFSET_PATTERN = r'(?:[zZ]|[+-]\d{2}:?\d{2})$'


def parse_timestamps(values: pd.Series, timestamp_format: str = 'ISO8601') -> pd.Series:
    """
    Parse a column of local timestamps, turning anything unparseable into NaT.

    Trip times are local wall-clock values, so a value carrying a UTC
    offset is treated as unparseable too.

    Args:
        values (pd.Series): Raw timestamp text
        timestamp_format (str): Format passed to pandas.to_datetime

    Returns:
        pd.Series: Naive datetime64 values
    """
    has_offset = values.astype('string').str.strip().str.contains(UTC_OFFSET_PATTERN, na=False)
    if has_offset.any():
        logger.warning(f"{int(has_offset.sum()):,} '{values.name}' values carry a UTC offset and are treated as unparseable")
    return pd.to_datetime(values.mask(has_offset), format=timestamp_format, errors='coerce')


def derive_fields(trips: pd.DataFrame, timestamp_format: str = 'ISO8601') -> pd.DataFrame:
    """
    Parse the timestamp columns and append the derived columns.

    Unparseable timestamps become NaT, so ride_length, date and day_of_week
    are missing for those rows and the cleaner drops them later.

    Args:
        trips (pd.DataFrame): Raw trip table
        timestamp_format (str): Format passed to pandas.to_datetime

    Returns:
        pd.DataFrame: A copy of the table with the three derived columns
    """
    derived = trips.copy()
    derived['started_at'] = parse_timestamps(derived['started_at'], timestamp_format)
    derived['ended_at'] = parse_timestamps(derived['ended_at'], timestamp_format)

    derived['ride_length'] = (derived['ended_at'] - derived['started_at']).dt.total_seconds()
    derived['date'] = derived['started_at'].dt.date
    derived['day_of_week'] = derived['started_at'].dt.day_name()

    unparsed = int(derived['ride_length'].isna().sum())
    if unparsed:
        logger.info(f"{unparsed:,} rows have a missing or unparseable timestamp")
    logger.debug(f"Derived {DERIVED_COLUMNS} for {len(derived):,} rows")
    return derived
