"""Tests for CSV reader module."""

from pathlib import Path

import pandas as pd
import pytest

from citysec_geocoder.csv_reader import (
    RESULT_COLUMNS,
    addresses_from_dataframe,
    read_address_csv,
    results_to_dataframe,
)
from citysec_geocoder.geocoding.base import (
    AddressComponents,
    GeocodeResult,
    GeocodeSource,
    LocationType,
)


@pytest.fixture
def address_csv_file(tmp_path: Path) -> Path:
    """
    Create a temporary CSV file with incident addresses.

    Args:
        tmp_path: pytest's temporary directory fixture

    Returns:
        Path to temporary CSV file
    """
    csv_file = tmp_path / "novedades.csv"
    csv_file.write_text(
        "codigo,direccion\n"
        "N-0001,Ca. Santa Teresa 115\n"
        "N-0002,\n"
        "N-0003,Jr. Los Olivos Mz B Lt 15\n",
        encoding="utf-8",
    )
    return csv_file


class TestReadAddressCsv:
    """Tests for read_address_csv function."""

    def test_reads_all_columns_as_strings(self, address_csv_file: Path):
        """Test reading a valid CSV."""
        df = read_address_csv(str(address_csv_file))

        assert len(df) == 3
        assert list(df.columns) == ["codigo", "direccion"]
        assert df.loc[0, "codigo"] == "N-0001"

    def test_missing_file(self, tmp_path: Path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_address_csv(str(tmp_path / "missing.csv"))

    def test_missing_column(self, address_csv_file: Path):
        """Test that a missing address column raises ValueError."""
        with pytest.raises(ValueError, match="Missing address column: address"):
            read_address_csv(str(address_csv_file), column="address")


class TestAddressesFromDataframe:
    """Tests for addresses_from_dataframe function."""

    def test_nan_becomes_empty_string(self, address_csv_file: Path):
        """Test that blank cells map to empty addresses."""
        df = read_address_csv(str(address_csv_file))

        assert addresses_from_dataframe(df) == [
            "Ca. Santa Teresa 115",
            "",
            "Jr. Los Olivos Mz B Lt 15",
        ]


class TestResultsToDataframe:
    """Tests for results_to_dataframe function."""

    def test_appends_result_columns(self):
        """Test that result fields are added next to the input columns."""
        df = pd.DataFrame({"direccion": ["Ca. Santa Teresa 115", "Av. Inexistente 999"]})
        results = [
            GeocodeResult(
                success=True,
                parsed=AddressComponents(street_name="Santa Teresa", house_number="115"),
                latitude=-16.3981,
                longitude=-71.5372,
                geocoded=True,
                location_type=LocationType.APPROXIMATE,
                source=GeocodeSource.DATABASE,
                reference_id=1,
                numeric_distance=5,
            ),
            GeocodeResult(
                success=False,
                parsed=AddressComponents(street_name="Inexistente"),
                message="No coordinates found for the given address",
            ),
        ]

        output = results_to_dataframe(df, results)

        assert list(output.columns) == ["direccion"] + RESULT_COLUMNS
        assert output.loc[0, "method"] == "database"
        assert output.loc[0, "location_type"] == "APPROXIMATE"
        assert output.loc[0, "latitude"] == -16.3981
        assert not output.loc[1, "success"]
        assert output.loc[1, "message"] == "No coordinates found for the given address"

    def test_length_mismatch(self):
        """Test that a result count mismatch is rejected."""
        df = pd.DataFrame({"direccion": ["a", "b"]})

        with pytest.raises(ValueError):
            results_to_dataframe(df, [])
