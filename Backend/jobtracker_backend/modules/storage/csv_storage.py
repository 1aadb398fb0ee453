import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from jobtracker_backend.modules.storage.base import StorageService

logger = logging.getLogger(__name__)


def to_cell(value: Any) -> str:
    """Render a Python value as the string stored in a CSV cell"""
    if value is None:
        return ''
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


class CSVStorageService(StorageService):
    """Base class for CSV-based storage models"""

    def __init__(self, file_path: str, columns: List[str], key_column: str = 'id'):
        """Initialize CSV storage

        Args:
            file_path: Path to CSV file
            columns: Ordered column names of the table
            key_column: Name of the integer column to use as primary key
        """
        self.file_path = Path(file_path)
        self.key_column = key_column
        self.columns = list(columns)
        # Highest key ever assigned; keys of deleted rows are never reissued
        self.sequence_path = self.file_path.with_name(self.file_path.name + ".seq")
        self._ensure_file_exists()

    def _ensure_file_exists(self):
        """Create file if it doesn't exist"""
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        if not os.path.exists(self.file_path) or os.path.getsize(self.file_path) == 0:
            df = pd.DataFrame(columns=self.columns)
            df.to_csv(self.file_path, index=False)
            logger.info(f"Created new CSV file: {self.file_path}")

    def _read_df(self) -> pd.DataFrame:
        """Read CSV file into DataFrame. All columns are read as strings."""
        try:
            df = pd.read_csv(
                self.file_path,
                dtype={col: str for col in self.columns},  # Force string type for all columns
                na_values=[''],
                keep_default_na=False  # 'None' or 'NA' are legitimate company names
            )
        except Exception as e:
            logger.error(f"Error reading CSV file {self.file_path}: {e}")
            raise
        # Columns added after the file was created read back as empty
        for col in self.columns:
            if col not in df.columns:
                df[col] = ''
        return df[self.columns].fillna('')

    def _write_df(self, df: pd.DataFrame):
        """Write DataFrame to CSV file"""
        try:
            df.to_csv(self.file_path, index=False)
        except Exception as e:
            logger.error(f"Error writing to CSV file {self.file_path}: {e}")
            raise

    def _key_mask(self, df: pd.DataFrame, key: int) -> pd.Series:
        return df[self.key_column] == str(key)

    def _read_high_water(self) -> int:
        try:
            return int(self.sequence_path.read_text().strip() or 0)
        except FileNotFoundError:
            return 0

    def _write_high_water(self, key: int):
        try:
            self.sequence_path.write_text(str(key))
        except Exception as e:
            logger.error(f"Error writing key sequence {self.sequence_path}: {e}")
            raise

    def _next_key(self, df: pd.DataFrame) -> int:
        high_water = self._read_high_water()
        if df.empty:
            return high_water + 1
        keys = pd.to_numeric(df[self.key_column], errors='coerce')
        current_max = int(keys.max()) if keys.notna().any() else 0
        return max(current_max, high_water) + 1

    def _to_row(self, value: Dict) -> Dict[str, str]:
        return {col: to_cell(value.get(col)) for col in self.columns}

    async def get(self, key: int) -> Optional[Dict]:
        """Get a single row by key"""
        df = self._read_df()
        row = df[self._key_mask(df, key)]
        if len(row) == 0:
            return None
        return row.iloc[0].to_dict()

    async def insert(self, value: Dict) -> int:
        """Insert a row. A zero or missing key gets a key never used before; an existing key is replaced."""
        df = self._read_df()
        key = int(value.get(self.key_column) or 0)
        if key == 0:
            key = self._next_key(df)
        else:
            df = df[~self._key_mask(df, key)]

        new_row = pd.DataFrame([self._to_row({**value, self.key_column: key})], columns=self.columns)
        df = new_row if df.empty else pd.concat([df, new_row], ignore_index=True)
        self._write_df(df)
        if key > self._read_high_water():
            self._write_high_water(key)
        return key

    async def update(self, key: int, value: Dict) -> bool:
        """Overwrite an existing row"""
        df = self._read_df()
        mask = self._key_mask(df, key)
        if not mask.any():
            return False

        row_idx = df.index[mask][0]
        row = self._to_row({**value, self.key_column: key})
        for col, val in row.items():
            df.at[row_idx, col] = val
        self._write_df(df)
        return True

    async def delete(self, key: int) -> None:
        """Delete a single row"""
        df = self._read_df()
        df = df[~self._key_mask(df, key)]
        self._write_df(df)

    async def delete_matching(self, filter_params: Dict) -> int:
        """Delete every row whose columns equal the given values. Returns the number removed."""
        df = self._read_df()
        mask = pd.Series(True, index=df.index)
        for col, value in filter_params.items():
            mask &= df[col] == to_cell(value)
        removed = int(mask.sum())
        if removed:
            self._write_df(df[~mask])
        return removed

    async def delete_all(self) -> None:
        """Delete every row, keeping the header"""
        self._write_df(pd.DataFrame(columns=self.columns))

    async def query(self, filter_params: Dict = None) -> List[Dict]:
        """Query rows with optional filters"""
        df = self._read_df()

        if filter_params:
            for col, value in filter_params.items():
                if col in df.columns:
                    df = df[df[col] == to_cell(value)]

        return df.to_dict('records')

    async def get_all(self) -> List[Dict]:
        """Get all rows"""
        df = self._read_df()
        return df.to_dict('records')
