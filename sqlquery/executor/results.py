"""Result set shapes returned to the caller."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List

import pyarrow as pa


@dataclass
class PositionalResultSet:
    """Rows as value lists aligned with the cursor's column order."""

    columns: List[str]
    rows: List[List[Any]] = field(default_factory=list)

    labeled = False

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[List[Any]]:
        return iter(self.rows)

    def to_arrow(self) -> pa.Table:
        """Materialize as an Arrow table (duplicate column names kept)."""
        arrays = []
        for index in range(len(self.columns)):
            arrays.append(pa.array([row[index] for row in self.rows]))
        return pa.Table.from_arrays(arrays, names=list(self.columns))


@dataclass
class LabeledResultSet:
    """Rows as column-name to value mappings.

    A column name that appears twice in the cursor keeps the value of the
    later column.
    """

    columns: List[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)

    labeled = True

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)

    def keys(self) -> List[str]:
        """Distinct column names in first-occurrence order."""
        return list(dict.fromkeys(self.columns))

    def to_arrow(self) -> pa.Table:
        """Materialize as an Arrow table with one column per distinct name."""
        data = {}
        for key in self.keys():
            data[key] = pa.array([row.get(key) for row in self.rows])
        return pa.Table.from_pydict(data)
