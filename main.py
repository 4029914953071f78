#!/usr/bin/env python3
# ========================
# main.py
# ========================

"""
Main Entry Point for the Bike-Share Trip Pipeline

Loads twelve monthly trip files, cleans them, compares members with casual
riders and writes the cleaned table plus summary tables.
"""

import sys
import argparse
import logging
from pathlib import Path

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent / 'src'))

from tripdata.pipeline import TripPipeline, monthly_file_paths
from tripdata.utils import Config, setup_logging, TripDataGenerator

def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments; defaults come from Config."""
    config = Config()
    parser = argparse.ArgumentParser(description="Clean and summarize a year of bike-share trips")
    parser.add_argument('--data-dir', default=config.DEFAULT_DATA_DIR,
                        help="Directory holding the monthly trip files")
    parser.add_argument('--output-dir', default=config.DEFAULT_OUTPUT_DIR,
                        help="Directory for the cleaned table and summaries")
    parser.add_argument('--year', type=int, default=config.DEFAULT_YEAR,
                        help="Year of the monthly files to load")
    parser.add_argument('--generate-sample', action='store_true',
                        help="Write synthetic monthly files first when any are missing")
    return parser.parse_args(argv)

def main(argv=None):
    """Main execution function."""
    args = parse_args(argv)

    # Initialize configuration
    config = Config({
        'default_data_dir': args.data_dir,
        'default_output_dir': args.output_dir,
        'default_year': args.year,
    })

    # Setup logging
    setup_logging(
        log_level=config.LOG_LEVEL,
        log_file="pipeline.log",
        log_dir=config.LOG_DIR
    )

    logger = logging.getLogger(__name__)
    logger.info("="*60)
    logger.info("BIKE-SHARE TRIP PIPELINE - MAIN EXECUTION")
    logger.info("="*60)

    try:
        # Ensure directories exist
        config.ensure_directories()

        # Step 1: Generate sample data when asked and needed
        generation_stats = None
        expected_files = monthly_file_paths(config.DEFAULT_DATA_DIR, config.DEFAULT_YEAR, config.FILE_SUFFIX)
        if args.generate_sample and not all(path.exists() for path in expected_files):
            logger.info("Step 1: Generating sample trip data...")
            generator = TripDataGenerator(seed=42)  # Reproducible data
            generation_stats = generator.generate_year(
                data_dir=config.DEFAULT_DATA_DIR,
                year=config.DEFAULT_YEAR,
                rows_per_month=config.SAMPLE_ROWS_PER_MONTH,
                error_rate=config.SAMPLE_ERROR_RATE,
                suffix=config.FILE_SUFFIX
            )

        # Step 2: Configure and run the pipeline
        logger.info("Step 2: Running trip pipeline...")
        pipeline = TripPipeline(
            data_dir=config.DEFAULT_DATA_DIR,
            output_dir=config.DEFAULT_OUTPUT_DIR,
            year=config.DEFAULT_YEAR,
            config=config
        )

        # Validate input before processing
        if not pipeline.validate_input():
            logger.error("Input validation failed. Exiting.")
            return 1

        estimates = pipeline.estimate_processing_time()
        if estimates:
            logger.info(f"Processing estimates: {estimates}")

        results = pipeline.run()

        # Step 3: Print summary
        _print_execution_summary(results, generation_stats)

        logger.info("Pipeline execution completed successfully!")
        return 0

    except Exception as e:
        logger.error(f"Pipeline execution failed: {e}", exc_info=True)
        return 1

def _print_execution_summary(results: dict, generation_stats) -> None:
    """Print final execution summary."""
    print("\n" + "="*70)
    print("PIPELINE EXECUTION SUMMARY")
    print("="*70)

    if generation_stats:
        print("Sample Data:")
        print(f"   - Records generated: {generation_stats['total_rows']:,}")
        print(f"   - Error rate injected: {generation_stats['error_rate']:.1%}")

    load_stats = results['load_stats']
    quality_stats = results['data_quality_stats']

    print("\nCleaning:")
    print(f"   - Rows loaded: {load_stats['rows_loaded']:,}")
    for name, dropped in quality_stats['dropped_by_filter'].items():
        print(f"   - Dropped ({name.replace('_', ' ')}): {dropped:,}")
    print(f"   - Rows kept: {quality_stats['records_cleaned']:,} ({quality_stats['success_rate']:.1f}%)")

    print("\nRides per rider type:")
    for rider, rides in results['processing_stats']['rides_per_rider_type'].items():
        print(f"   - {rider}: {rides:,}")

    print("\nGenerated Outputs:")
    for dataset_type, file_path in results['saved_files'].items():
        print(f"   - {dataset_type.replace('_', ' ').title()}: {Path(file_path).name}")

    print("="*70)

if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
