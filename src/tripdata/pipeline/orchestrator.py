# ========================
# src/tripdata/pipeline/orchestrator.py
# ========================

"""
Pipeline Orchestrator Module

Main orchestrator class that runs load, derive, clean, aggregate and export
for one year of trip files. Nothing is written until every in-memory stage
has succeeded.
"""

import logging
from typing import Optional
from pathlib import Path

from .ingestion import TripDataError, TripLoader, monthly_file_paths
from .derivation import derive_fields
from .cleaning import TripCleaner
from .transformation import TripAggregator
from .storage import TripDataSaver
from ..utils.performance_monitor import monitor_performance, SystemResourceMonitor
from ..utils.config import Config

logger = logging.getLogger(__name__)

class TripPipeline:
    """
    Orchestrates the trip data pipeline.
    Coordinates loading, field derivation, cleaning, aggregation and export.
    """

    def __init__(self,
                 data_dir: str,
                 output_dir: str,
                 year: int,
                 config: Optional[Config] = None):
        """
        Initialize the trip pipeline.

        Args:
            data_dir (str): Directory holding the twelve monthly files
            output_dir (str): Directory for output files
            year (int): Year whose monthly files are loaded
            config (Config): Configuration object
        """
        self.data_dir = data_dir
        self.output_dir = output_dir
        self.year = year
        self.config = config or Config()

        failed = [name for name, ok in self.config.validate_config().items() if not ok]
        if failed:
            raise ValueError(f"Invalid configuration settings: {failed}")

        self.input_files = monthly_file_paths(self.data_dir, self.year, self.config.FILE_SUFFIX)

        # Initialize pipeline components
        self.loader = TripLoader(self.input_files, chunk_size=self.config.DEFAULT_CHUNK_SIZE)
        self.cleaner = TripCleaner(self.config)
        self.aggregator = TripAggregator(self.config)

        logger.info("TripPipeline initialized:")
        logger.info(f"  Input: {self.data_dir} ({self.year}, {len(self.input_files)} files)")
        logger.info(f"  Output: {self.output_dir}")

    def run(self) -> dict:
        """
        Execute the complete pipeline from start to finish.

        Returns:
            dict: Summary of processing results and saved files
        """
        logger.info(f"Starting trip pipeline for {self.year} in '{self.data_dir}'...")

        with monitor_performance("TripPipeline") as monitor:
            raw_trips = self.loader.load()
            monitor.update_progress(len(raw_trips))
            monitor.add_checkpoint('load', {'rows': len(raw_trips)})

            trips = derive_fields(raw_trips, self.config.TIMESTAMP_FORMAT)
            del raw_trips
            monitor.add_checkpoint('derive')

            cleaned = self.cleaner.clean(trips)
            del trips
            monitor.add_checkpoint('clean', {'rows': len(cleaned)})
            self._check_data_quality()

            self.aggregator.aggregate(cleaned)
            monitor.add_checkpoint('aggregate')

            # Outputs are written only once every stage above has succeeded
            logger.info("Saving cleaned trips and summary tables...")
            saver = TripDataSaver(self.output_dir, self.config)
            summary = {
                'year': self.year,
                'load_stats': self.loader.get_statistics(),
                'data_quality_stats': self.cleaner.get_statistics(),
                'aggregation_summary': self.aggregator.get_aggregation_summary(),
            }
            with saver.output_set():
                saved_files = {'cleaned_trips': saver.save_cleaned_trips(cleaned)}
                saved_files.update(saver.save_all_data(self.aggregator))
                saved_files['data_dictionary'] = saver.create_data_dictionary()
                saved_files['summary'] = saver.save_run_summary(summary)
            monitor.add_checkpoint('export')

        # Compile results
        results = {
            'pipeline_status': 'completed',
            'year': self.year,
            'input_files': [str(path) for path in self.input_files],
            'output_directory': self.output_dir,
            'saved_files': saved_files,
            'load_stats': summary['load_stats'],
            'data_quality_stats': summary['data_quality_stats'],
            'processing_stats': summary['aggregation_summary'],
            'performance': monitor.summary
        }

        logger.info("Pipeline finished successfully.")
        self._log_final_summary(results)

        return results

    def _check_data_quality(self) -> None:
        """Warn when the share of rows kept is below the configured minimum."""
        stats = self.cleaner.get_statistics()
        if stats['records_processed'] and stats['success_rate'] < self.config.MIN_DATA_QUALITY_RATE * 100:
            logger.warning(
                f"Only {stats['success_rate']:.1f}% of rows passed cleaning "
                f"(minimum expected {self.config.MIN_DATA_QUALITY_RATE:.0%})"
            )

    def _log_final_summary(self, results: dict) -> None:
        """Log final pipeline summary."""
        logger.info("="*60)
        logger.info("PIPELINE EXECUTION SUMMARY")
        logger.info("="*60)

        load_stats = results['load_stats']
        quality_stats = results['data_quality_stats']

        logger.info(f"Rows loaded: {load_stats['rows_loaded']:,} from {load_stats['files_loaded']} files")
        for name, dropped in quality_stats['dropped_by_filter'].items():
            logger.info(f"  dropped by {name}: {dropped:,}")
        logger.info(f"Rows kept: {quality_stats['records_cleaned']:,} ({quality_stats['success_rate']:.1f}%)")
        logger.info(f"Output files generated: {len(results['saved_files'])}")
        logger.info(f"Output directory: {results['output_directory']}")

        for dataset_type, file_path in results['saved_files'].items():
            logger.info(f"  - {dataset_type}: {file_path}")

        logger.info("="*60)

    def validate_input(self) -> bool:
        """
        Validate that every monthly file exists with the expected header,
        and warn when free memory looks too small for the year.

        Returns:
            bool: True if input is valid
        """
        try:
            self.loader.validate_sources()
        except (OSError, TripDataError) as e:
            logger.error(f"Input validation failed: {e}")
            return False

        resources = SystemResourceMonitor.check_resource_availability(self.config.MIN_AVAILABLE_MEMORY_GB)
        if not resources['sufficient_memory']:
            logger.warning(
                f"Less than {self.config.MIN_AVAILABLE_MEMORY_GB} GB of memory available; "
                "the full year must fit in memory"
            )

        logger.info(f"Input validation passed: {len(self.input_files)} files in {self.data_dir}")
        return True

    def estimate_processing_time(self) -> dict:
        """
        Estimate processing time based on total input size.

        Returns:
            dict: Processing time estimates
        """
        try:
            total_size = sum(Path(path).stat().st_size for path in self.input_files)
        except OSError as e:
            logger.warning(f"Could not estimate processing time: {e}")
            return {}

        estimated_rows = total_size // 180  # Rough estimate: 180 bytes per trip row

        # Base processing rate (rows per second) - conservative estimate
        base_rate = 400000
        estimated_seconds = estimated_rows / base_rate

        return {
            'input_size_mb': total_size / (1024 * 1024),
            'estimated_rows': estimated_rows,
            'estimated_processing_time_seconds': estimated_seconds,
            'estimated_processing_time_minutes': estimated_seconds / 60,
        }
