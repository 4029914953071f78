# ========================
# src/tripdata/pipeline/__init__.py
# ========================

"""
Trip Pipeline Package

This package contains all core components of the trip data pipeline:
- ingestion: Monthly file loading with schema checks
- derivation: ride_length, date and day_of_week
- cleaning: Rule-based removal of invalid trips
- transformation: Rider-segment aggregations
- storage: Flat file exports
- orchestrator: Pipeline coordination
"""

from .ingestion import (
    TripFileReader,
    TripLoader,
    TripDataError,
    SchemaMismatchError,
    ColumnTypeError,
    MalformedFileError,
    monthly_file_paths,
)
from .derivation import derive_fields
from .cleaning import TripCleaner
from .transformation import TripAggregator
from .storage import TripDataSaver
from .orchestrator import TripPipeline

__all__ = [
    'TripFileReader',
    'TripLoader',
    'TripDataError',
    'SchemaMismatchError',
    'ColumnTypeError',
    'MalformedFileError',
    'monthly_file_paths',
    'derive_fields',
    'TripCleaner',
    'TripAggregator',
    'TripDataSaver',
    'TripPipeline'
]
