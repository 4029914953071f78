# ========================
# src/tripdata/__init__.py
# ========================

"""
Bike-share trip data pipeline: load a year of monthly trip files, clean them
and compare members with casual riders.
"""

__version__ = "1.0.0"
