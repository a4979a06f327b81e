# core/csv_export.py

import csv
import io
from typing import Any, Iterable, List, Mapping, Tuple

from fastapi.responses import Response


def rows_to_csv(rows: Iterable[Mapping[str, Any]], columns: List[Tuple[str, str]]) -> str:
    """
    Render rows with a fixed (header, field) column list.
    Every cell is quoted; None becomes an empty cell.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([header for header, _ in columns])
    for row in rows:
        writer.writerow(["" if row.get(field) is None else row.get(field) for _, field in columns])
    return buffer.getvalue()


def csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
