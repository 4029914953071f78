# ========================
# src/tripdata/utils/__init__.py
# ========================

"""
Utilities Package

Common utilities and helper functions for the trip pipeline.
"""

from .config import Config
from .performance_monitor import monitor_performance, PerformanceMonitor, SystemResourceMonitor
from .logging_setup import setup_logging
from .data_generator import TripDataGenerator

__all__ = [
    'Config',
    'monitor_performance',
    'PerformanceMonitor',
    'SystemResourceMonitor',
    'setup_logging',
    'TripDataGenerator'
]
