"""Plain-text correlation files."""

from __future__ import annotations

import itertools
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from ...correlation.result import CorrelationResult
from ..base import CorrelationReader, CorrelationWriter

_AXES = "xyz"


def _component_labels(shape: tuple[int, ...]) -> list[str]:
    """Column labels for the flattened components of one value."""
    if not shape:
        return ["corrVal"]
    labels = []
    for index in itertools.product(*(range(n) for n in shape)):
        if all(n == 3 for n in shape):
            suffix = "".join(_AXES[i] for i in index)
        else:
            suffix = ",".join(str(i) for i in index)
        labels.append(f"corrVal[{suffix}]")
    return labels


class CorrelationTextWriter(CorrelationWriter):
    """
    Tab-separated correlation writer.

    Layout:
        # <title>
        # selection script1: "<A>"	selection script2: "<B>"
        # shape: <dims or scalar>	frameInterval: <dt>
        # time	count	corrVal...
        <time>	<count>	<components row-major>
    """

    def __init__(self, filename: str | Path, precision: int = 8) -> None:
        """
        Initialize writer.

        Args:
            filename: Output file path.
            precision: Significant digits for times and values.
        """
        super().__init__(filename)
        self._fmt = f"{{:.{precision}g}}"

    def write_header(self, result: CorrelationResult) -> None:
        meta = result.metadata
        shape = result.result_shape
        shape_str = " ".join(str(n) for n in shape) if shape else "scalar"

        self._file.write(f"# {result.title}\n")
        self._file.write(
            f'# selection script1: "{meta.get("selection_a", "")}"'
            f'\tselection script2: "{meta.get("selection_b", "")}"\n'
        )
        self._file.write(f"# shape: {shape_str}\tframeInterval: {result.frame_interval!r}\n")
        self._file.write("# " + "\t".join(["time", "count", *_component_labels(shape)]) + "\n")

    def write_row(self, time: float, count: int, value: NDArray[np.floating]) -> None:
        components = "\t".join(self._fmt.format(v) for v in np.ravel(value))
        self._file.write(f"{self._fmt.format(time)}\t{count}\t{components}\n")


class CorrelationTextReader(CorrelationReader):
    """Reader for files produced by CorrelationTextWriter."""

    def read(self) -> CorrelationResult:
        """
        Read the correlation result.

        Returns:
            CorrelationResult with title and selections restored in metadata.

        Raises:
            ValueError: If the header or the column count is malformed.
        """
        header: list[str] = []
        rows: list[list[float]] = []
        for line in self._lines():
            if line.startswith("#"):
                header.append(line[1:].strip())
            else:
                rows.append([float(x) for x in line.split("\t")])

        if len(header) < 4:
            raise ValueError(f"{self.filename}: expected 4 header lines, got {len(header)}")

        metadata: dict[str, str] = {"title": header[0]}
        fields = dict(
            (key.strip(), value.strip().strip('"'))
            for key, _, value in (part.partition(":") for part in header[1].split("\t"))
        )
        metadata["selection_a"] = fields.get("selection script1", "")
        metadata["selection_b"] = fields.get("selection script2", "")

        layout = dict(
            (key.strip(), value.strip())
            for key, _, value in (part.partition(":") for part in header[2].split("\t"))
        )
        shape_str = layout.get("shape", "scalar")
        shape = () if shape_str == "scalar" else tuple(int(n) for n in shape_str.split())
        frame_interval = float(layout.get("frameInterval", 1.0))

        n_components = int(np.prod(shape)) if shape else 1
        table = np.asarray(rows, dtype=np.float64).reshape(len(rows), -1)
        if table.shape[1] != 2 + n_components:
            raise ValueError(
                f"{self.filename}: expected {2 + n_components} columns, got {table.shape[1]}"
            )

        return CorrelationResult(
            values=table[:, 2:].reshape((len(table), *shape)),
            counts=np.rint(table[:, 1]).astype(np.int64),
            frame_interval=frame_interval,
            metadata=metadata,
        )
