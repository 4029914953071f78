# ========================
# src/tripdata/pipeline/ingestion.py
# ========================

"""
Data Ingestion Module

Reads the monthly trip files and concatenates them into one table.
Every file is checked before any data is read, so a missing month or a
drifted header aborts the run instead of producing a partial year.
"""

import csv
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

TRIP_COLUMNS = [
    'ride_id',
    'rideable_type',
    'started_at',
    'ended_at',
    'start_station_name',
    'start_station_id',
    'end_station_name',
    'end_station_id',
    'start_lat',
    'start_lng',
    'end_lat',
    'end_lng',
    'member_casual',
]

COORDINATE_COLUMNS = ['start_lat', 'start_lng', 'end_lat', 'end_lng']


class TripDataError(Exception):
    """Base class for fatal input problems."""


class SchemaMismatchError(TripDataError):
    """A trip file header does not match the expected column set."""


class ColumnTypeError(TripDataError):
    """A column holds values that cannot be converted to its expected type."""


class MalformedFileError(TripDataError):
    """A trip file is not valid UTF-8 CSV (bad encoding or a row with too many fields)."""


def monthly_file_paths(data_dir: str, year: int, suffix: str = '-divvy-tripdata.csv') -> List[Path]:
    """
    Build the twelve monthly file paths for a year.

    Args:
        data_dir (str): Directory holding the monthly files
        year (int): Calendar year, e.g. 2024
        suffix (str): Fixed suffix following the YYYYMM prefix

    Returns:
        list[Path]: Paths for January through December, in calendar order
    """
    base = Path(data_dir)
    return [base / f"{year}{month:02d}{suffix}" for month in range(1, 13)]


class TripFileReader:
    """
    Reader for a single monthly trip file.
    Text columns are kept as strings so station ids are not turned into floats.
    """

    def __init__(self, file_path):
        """
        Initialize the trip file reader.

        Args:
            file_path (str | Path): Path to the CSV file to read
        """
        self.file_path = Path(file_path)
        self.header = []
        logger.debug(f"Initialized TripFileReader for file: {self.file_path}")

    def read_header(self) -> List[str]:
        """
        Read only the header row of the file.

        Returns:
            list[str]: Column names, empty for an empty file
        """
        try:
            with open(self.file_path, 'r', newline='', encoding='utf-8-sig') as f:
                reader = csv.reader(f)
                self.header = [name.strip() for name in next(reader, [])]
        except FileNotFoundError:
            logger.error(f"File '{self.file_path}' was not found")
            raise
        except UnicodeDecodeError as e:
            message = f"File '{self.file_path}' is not valid UTF-8: {e}"
            logger.error(message)
            raise MalformedFileError(message) from e
        return self.header

    def read_in_chunks(self, chunk_size: int) -> Iterator[pd.DataFrame]:
        """
        A generator that yields DataFrame chunks of the file.

        Args:
            chunk_size (int): The number of rows to yield per chunk.

        Yields:
            pd.DataFrame: A chunk of rows with all columns read as text.
            Only empty cells are missing; text such as "NA" is kept.

        Raises:
            MalformedFileError: If the file is not valid UTF-8 or a row has extra fields
        """
        try:
            reader = pd.read_csv(
                self.file_path,
                dtype=str,
                chunksize=chunk_size,
                encoding='utf-8-sig',
                keep_default_na=False,
                na_values=[''],
            )
            with reader:
                for chunk in reader:
                    chunk.columns = [name.strip() for name in chunk.columns]
                    logger.debug(f"Yielding chunk with {len(chunk)} rows from {self.file_path.name}")
                    yield chunk
        except FileNotFoundError:
            logger.error(f"File '{self.file_path}' was not found")
            raise
        except pd.errors.EmptyDataError:
            logger.warning(f"File '{self.file_path}' is empty")
        except pd.errors.ParserError as e:
            message = f"File '{self.file_path}' could not be parsed: {e}"
            logger.error(message)
            raise MalformedFileError(message) from e
        except UnicodeDecodeError as e:
            message = f"File '{self.file_path}' is not valid UTF-8: {e}"
            logger.error(message)
            raise MalformedFileError(message) from e


class TripLoader:
    """
    Loads a list of monthly trip files into a single DataFrame.
    Row order of the result is file order, then row order within each file.
    """

    def __init__(self, file_paths: Sequence, chunk_size: int = 500000):
        """
        Initialize the loader.

        Args:
            file_paths (list): Monthly files, in the order they should be concatenated
            chunk_size (int): Rows read per chunk from each file
        """
        self.file_paths = [Path(p) for p in file_paths]
        self.chunk_size = chunk_size
        self.rows_per_file: Dict[str, int] = {}
        logger.info(f"TripLoader initialized with {len(self.file_paths)} files")

    def validate_sources(self) -> None:
        """
        Check that every file exists and has the expected header.

        Raises:
            FileNotFoundError: If any file is missing
            SchemaMismatchError: If a header differs from the expected column set
        """
        if not self.file_paths:
            raise TripDataError("No trip files to load")

        missing = [str(p) for p in self.file_paths if not p.is_file()]
        if missing:
            logger.error(f"Missing trip files: {missing}")
            raise FileNotFoundError(f"Missing trip file(s): {', '.join(missing)}")

        expected = set(TRIP_COLUMNS)
        for path in self.file_paths:
            header = TripFileReader(path).read_header()
            found = set(header)
            if found != expected or len(header) != len(found):
                missing_cols = sorted(expected - found)
                unexpected_cols = sorted(found - expected)
                message = (
                    f"Schema mismatch in '{path}': missing columns {missing_cols}, "
                    f"unexpected columns {unexpected_cols}"
                )
                if len(header) != len(found):
                    message += ", duplicate column names present"
                logger.error(message)
                raise SchemaMismatchError(message)

        logger.info(f"All {len(self.file_paths)} trip files present with expected schema")

    def load(self) -> pd.DataFrame:
        """
        Read and concatenate all files.

        Returns:
            pd.DataFrame: The raw trip table with a 0..n-1 index in load order

        Raises:
            FileNotFoundError, SchemaMismatchError, ColumnTypeError, MalformedFileError
        """
        self.validate_sources()

        frames = []
        self.rows_per_file = {}
        for path in self.file_paths:
            file_frame = self._load_file(path)
            self.rows_per_file[path.name] = len(file_frame)
            logger.info(f"Loaded {len(file_frame):,} rows from {path.name}")
            frames.append(file_frame)

        trips = pd.concat(frames, ignore_index=True)
        logger.info(f"Total rows loaded: {len(trips):,}")
        return trips

    def _load_file(self, path: Path) -> pd.DataFrame:
        """Read one file, convert coordinates and put columns in canonical order."""
        chunks = list(TripFileReader(path).read_in_chunks(self.chunk_size))
        if chunks:
            frame = pd.concat(chunks, ignore_index=True)
        else:
            frame = pd.DataFrame(columns=TRIP_COLUMNS, dtype=object)

        for column in COORDINATE_COLUMNS:
            try:
                frame[column] = pd.to_numeric(frame[column], errors='raise').astype('float64')
            except (ValueError, TypeError) as e:
                message = f"Column '{column}' in '{path}' is not numeric: {e}"
                logger.error(message)
                raise ColumnTypeError(message) from e

        return frame[TRIP_COLUMNS]

    def get_statistics(self) -> Dict[str, object]:
        """Get row counts per file and in total."""
        return {
            'files_loaded': len(self.rows_per_file),
            'rows_per_file': dict(self.rows_per_file),
            'rows_loaded': sum(self.rows_per_file.values()),
        }
