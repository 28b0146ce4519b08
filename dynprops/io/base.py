"""Base classes for correlation result files."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..correlation.result import CorrelationResult


class CorrelationWriter(ABC):
    """
    Writes a correlation result as a header followed by one row per lag.

    Subclasses decide how the header and rows are encoded. Lags without
    data are written like any other, with a zero count.

    Example:
        with CorrelationTextWriter("run.ftcorr") as writer:
            writer.write(result)
    """

    def __init__(self, filename: str | Path) -> None:
        """
        Initialize writer.

        Args:
            filename: Output file path.
        """
        self.filename = Path(filename)
        self._file = None
        self._n_rows = 0

    @classmethod
    def for_result(cls, result: CorrelationResult, directory: str | Path = ".", **kwargs):
        """
        Create a writer named after the result's ``output_name`` metadata.

        Raises:
            KeyError: If the result was computed without an output prefix.
        """
        return cls(Path(directory) / result.metadata["output_name"], **kwargs)

    @abstractmethod
    def write_header(self, result: CorrelationResult) -> None:
        """Write the lines describing the result."""
        ...

    @abstractmethod
    def write_row(self, time: float, count: int, value: NDArray[np.floating]) -> None:
        """Write one lag."""
        ...

    def write(self, result: CorrelationResult) -> None:
        """
        Write a whole result.

        Raises:
            RuntimeError: If the file is not open.
        """
        if self._file is None:
            raise RuntimeError("File not open. Use context manager or call open().")
        self.write_header(result)
        for time, count, value in zip(result.times, result.counts, result.values):
            self.write_row(float(time), int(count), value)
            self._n_rows += 1

    @property
    def n_rows(self) -> int:
        """Number of lag rows written."""
        return self._n_rows

    def open(self) -> None:
        """Open file for writing."""
        self._file = self.filename.open("w")

    def close(self) -> None:
        """Close file."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> CorrelationWriter:
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class CorrelationReader(ABC):
    """Reads a correlation result back from a file."""

    def __init__(self, filename: str | Path) -> None:
        self.filename = Path(filename)

    def _lines(self) -> Iterable[str]:
        with self.filename.open() as f:
            for line in f:
                line = line.rstrip("\n")
                if line.strip():
                    yield line

    @abstractmethod
    def read(self) -> CorrelationResult:
        """Read the stored result."""
        ...
