"""CSV input/output for batch address geocoding."""

from pathlib import Path

import pandas as pd
from loguru import logger

from citysec_geocoder.geocoding.base import GeocodeResult

DEFAULT_ADDRESS_COLUMN = "direccion"

# Output columns appended to each input address
RESULT_COLUMNS = [
    "success",
    "latitude",
    "longitude",
    "location_type",
    "method",
    "source_description",
    "reference_id",
    "reference_text",
    "numeric_distance",
    "display_name",
    "message",
]


def read_address_csv(file_path: str, column: str = DEFAULT_ADDRESS_COLUMN) -> pd.DataFrame:
    """
    Read a CSV file containing addresses to geocode.

    Args:
        file_path: Path to the CSV file
        column: Name of the column holding the free-text address

    Returns:
        pandas DataFrame with original columns, all as strings

    Raises:
        FileNotFoundError: If the CSV file doesn't exist
        ValueError: If the address column is missing
    """
    path = Path(file_path)
    if not path.exists():
        logger.error("CSV file not found: {}", file_path)
        raise FileNotFoundError(f"CSV file not found: {file_path}")

    logger.info("Reading CSV file: {}", file_path)

    df = pd.read_csv(file_path, dtype=str)

    logger.debug("CSV loaded with {} rows and {} columns", len(df), len(df.columns))

    if column not in df.columns:
        logger.error("Missing address column: {}", column)
        raise ValueError(
            f"Missing address column: {column}. "
            f"Available: {', '.join(df.columns)}"
        )

    return df


def addresses_from_dataframe(df: pd.DataFrame, column: str = DEFAULT_ADDRESS_COLUMN) -> list[str]:
    """Address strings from a DataFrame column, with NaN as empty text."""
    return ["" if pd.isna(value) else str(value) for value in df[column]]


def results_to_dataframe(df: pd.DataFrame, results: list[GeocodeResult]) -> pd.DataFrame:
    """
    Append geocoding results to the input rows.

    Args:
        df: Input DataFrame, one row per result
        results: Results in the same order as ``df``

    Returns:
        Copy of ``df`` with RESULT_COLUMNS added

    Raises:
        ValueError: If row and result counts differ
    """
    if len(df) != len(results):
        raise ValueError(f"Expected {len(df)} results, got {len(results)}")

    rows = []
    for result in results:
        data = result.to_dict()
        rows.append({col: data[col] for col in RESULT_COLUMNS})

    output = df.reset_index(drop=True).copy()
    result_df = pd.DataFrame(rows, columns=RESULT_COLUMNS)
    for col in RESULT_COLUMNS:
        output[col] = result_df[col]

    logger.debug("Built output with {} rows", len(output))
    return output
