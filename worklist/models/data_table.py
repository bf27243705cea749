"""
Data Table
Generic ordered table used to hand remote records to the worklist views.
Columns are named, keep their declaration order and carry a visibility flag.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Sequence


class FieldSelection(Enum):
    """Which columns a lookup should consider."""
    ALL = 'all'
    VISIBLE = 'visible'
    INVISIBLE = 'invisible'


@dataclass
class Column:
    """
    Column metadata.

    Attributes:
        name: Column name, unique within a table
        visible: Display hint; invisible columns still hold their data
    """
    name: str
    visible: bool = True

    def matches(self, selection: FieldSelection) -> bool:
        if selection == FieldSelection.VISIBLE:
            return self.visible
        if selection == FieldSelection.INVISIBLE:
            return not self.visible
        return True


class DataTable:
    """
    Ordered tabular container with string cells.

    A table without columns has an unknown shape; the JSON parser fills in the
    columns from the first record it sees.

    Usage:
        table = DataTable(['id', 'name'])
        table.insert(['1', 'Alice'])
        table.set_column_as_invisible('id')
        table.get_column_names(FieldSelection.VISIBLE)  # ['name']
    """

    def __init__(self, columns: Iterable[str] = (), visibility: Optional[Dict[str, bool]] = None):
        """
        Initialize table.

        Args:
            columns: Column names in display order
            visibility: Optional mapping of column name to visibility flag
        """
        self._columns: List[Column] = []
        self._rows: List[List[str]] = []
        self.set_columns(columns)

        for name, visible in (visibility or {}).items():
            self._column(name).visible = visible

    def set_columns(self, columns: Iterable[str]) -> None:
        """
        Replace the column set. Existing rows are dropped since their width
        no longer matches.

        Raises:
            ValueError: If a column name appears twice
        """
        names = list(columns)
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate column names: {names}")

        self._columns = [Column(str(name)) for name in names]
        self._rows = []

    def insert(self, row: Sequence[str]) -> None:
        """
        Append a row.

        Raises:
            ValueError: If the row width differs from the column count
        """
        if len(row) != len(self._columns):
            raise ValueError(
                f"Row has {len(row)} cells but table has {len(self._columns)} columns"
            )
        self._rows.append([str(cell) for cell in row])

    def clear(self) -> None:
        """Remove all rows, keeping the columns."""
        self._rows = []

    def copy(self) -> 'DataTable':
        """Independent copy of columns, visibility flags and rows."""
        duplicate = DataTable()
        duplicate._columns = [Column(c.name, c.visible) for c in self._columns]
        duplicate._rows = [list(row) for row in self._rows]
        return duplicate

    @property
    def columns(self) -> List[Column]:
        return list(self._columns)

    def get_column_count(self) -> int:
        return len(self._columns)

    def get_column_names(self, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        return [c.name for c in self._columns if c.matches(selection)]

    def get_column_index(self, name: str) -> int:
        """
        Raises:
            KeyError: If the column does not exist
        """
        for index, column in enumerate(self._columns):
            if column.name == name:
                return index
        raise KeyError(name)

    def has_column(self, name: str) -> bool:
        return any(c.name == name for c in self._columns)

    def set_column_as_visible(self, name: str) -> None:
        self._column(name).visible = True

    def set_column_as_invisible(self, name: str) -> None:
        self._column(name).visible = False

    def is_column_visible(self, name: str) -> bool:
        return self._column(name).visible

    def size(self) -> int:
        return len(self._rows)

    def at(self, index: int, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        """
        Get a row, projected on the selected columns.

        Args:
            index: Row index
            selection: Columns to include

        Returns:
            List of cells in column order
        """
        row = self._rows[index]
        return [cell for cell, column in zip(row, self._columns) if column.matches(selection)]

    def at_as_dict(self, index: int) -> Dict[str, str]:
        return {column.name: cell for column, cell in zip(self._columns, self._rows[index])}

    @property
    def rows(self) -> List[List[str]]:
        return [list(row) for row in self._rows]

    def _column(self, name: str) -> Column:
        for column in self._columns:
            if column.name == name:
                return column
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[List[str]]:
        return iter(self.rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataTable):
            return NotImplemented
        return self._columns == other._columns and self._rows == other._rows

    def __repr__(self) -> str:
        return f"DataTable(columns={self.get_column_names()}, rows={len(self._rows)})"
