"""CSV export for admin tables."""
import csv
import io
import json
from collections.abc import Iterable, Mapping, Sequence
from typing import Any


def format_cell(value: Any) -> str:
    """Render one value the way exports show it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def to_csv(header: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Build an RFC 4180 style document.

    Fields containing a comma, quote or line break are quoted and embedded
    quotes doubled. Lines end with ``\\n``, including the last one.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow([format_cell(value) for value in row])
    return buffer.getvalue()


def records_to_csv(records: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """Export dict rows, keeping only ``columns`` in that order."""
    return to_csv(columns, ([record.get(column) for column in columns] for record in records))


def parse_csv(content: str) -> list[list[str]]:
    """Read a document produced by ``to_csv`` back into rows."""
    return [row for row in csv.reader(io.StringIO(content, newline=""))]


def csv_filename(*parts: str) -> str:
    slug = "-".join(part.strip().replace(" ", "-") for part in parts if part and part.strip())
    return f"snapwin-{slug}.csv"
