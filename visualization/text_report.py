"""
Plain text report of benchmark results.

One section per file test, each holding a table with an operation per row
and an endpoint per column::

    *********
    File: ft1
    *********

    Operation     end1           end2
    ---------------------------------------
    Upload        16.00 Mbps     10.00 Mbps
    Download      -              10.00 Mbps

"""

from typing import List, Mapping, Optional, Sequence

from common.duration_utils import format_duration
from common.errors import ConfigurationError, TableFormatError
from common.models import ID, Operation, Result
from configuration import (
    TABLE_PADDING,
    HEADER_SEPARATOR,
    FILE_TITLE_PREFIX,
    FILE_TITLE_BORDER,
    BITS_PER_BYTE,
    BITS_PER_MEGABIT,
)

NO_DATA = "-"
ERROR_CELL = "ERR"


def format_cell(operation: Operation, file_test_size: int, result: Optional[Result]) -> str:
    """Render one table cell.

    Missing results are ``-`` and failed ones ``ERR``. Deletes show their
    duration; uploads and downloads show throughput in megabits per second.
    A zero duration renders as ``+Inf Mbps``.
    """
    if result is None:
        return NO_DATA

    if result.error:
        return ERROR_CELL

    if operation == Operation.DELETE:
        return format_duration(result.duration)

    megabits = file_test_size * BITS_PER_BYTE / BITS_PER_MEGABIT
    if result.duration <= 0:
        return "+Inf Mbps"
    return f"{megabits / result.duration:.2f} Mbps"


def make_table(rows: Sequence[Sequence[str]], header_separator: str = HEADER_SEPARATOR) -> str:
    """Lay out rows as a left-aligned table.

    The first row is the header. Every column is as wide as its widest cell
    and followed by TABLE_PADDING spaces, except the last one which ends the
    line. When ``header_separator`` is not empty, a rule of it spanning the
    whole table is written under the header.

    Raises:
        TableFormatError: If the rows do not all have the same length
    """
    if not rows:
        return ""

    num_columns = len(rows[0])
    widths = [0] * num_columns
    for row in rows:
        if len(row) != num_columns:
            raise TableFormatError(
                f"Mismatched column numbers: expected {num_columns}, got {len(row)}"
            )
        for i, item in enumerate(row):
            widths[i] = max(widths[i], len(item))

    lines: List[str] = []
    for row_index, row in enumerate(rows):
        cells = [item.ljust(widths[i] + TABLE_PADDING) for i, item in enumerate(row[:-1])]
        cells.extend(row[-1:])
        lines.append("".join(cells))

        if row_index == 0 and header_separator:
            total_width = sum(widths) + (num_columns - 1) * TABLE_PADDING
            lines.append(header_separator * total_width)

    return "\n".join(lines) + "\n"


def _section_title(file_test_id: ID) -> str:
    title = f"{FILE_TITLE_PREFIX}{file_test_id}"
    border = FILE_TITLE_BORDER * len(title)
    return f"{border}\n{title}\n{border}\n\n"


def format_results(snapshot, file_test_sizes: Mapping[ID, int]) -> str:
    """Render a result snapshot as the text report.

    Args:
        snapshot: ResultSnapshot taken from the aggregator
        file_test_sizes: Configured payload size of each file test in bytes

    Returns:
        The full report; empty when there are no results

    Raises:
        ConfigurationError: If a reported file test has no configured size
    """
    file_test_ids = snapshot.file_test_ids()
    endpoint_ids = snapshot.endpoint_ids()
    operations = snapshot.operations()

    sections: List[str] = []
    for file_test_id in file_test_ids:
        file_test_size = file_test_sizes.get(file_test_id, 0)
        if not file_test_size:
            raise ConfigurationError(f"Unknown file test size for {file_test_id}",
                                     {"filetest": file_test_id})

        rows = [["Operation"] + list(endpoint_ids)]
        for operation in operations:
            row = [str(operation)]
            for endpoint_id in endpoint_ids:
                result = snapshot.get(file_test_id, operation, endpoint_id)
                row.append(format_cell(operation, file_test_size, result))
            rows.append(row)

        sections.append(_section_title(file_test_id) + make_table(rows) + "\n")

    return "".join(sections)
