# reports/services/csv_format.py

"""
CSV RENDERING FOR REPORTS AND EXPORTS

- Rows are dicts; the header is either the declared column list or the
  keys of the first row.
- dict / list cells are written as JSON (quoted by the writer).
- Cells containing a comma, a quote or a newline are quoted, with inner
  quotes doubled.
- None is an empty cell.
- Lines are joined with "\\n" and there is no trailing newline, so a
  zero-row export is exactly the header line.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime
from decimal import Decimal

from django.core.serializers.json import DjangoJSONEncoder


def format_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, cls=DjangoJSONEncoder, separators=(",", ":"))
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def rows_to_csv(rows, columns=None) -> str:
    rows = list(rows)
    if columns is None:
        columns = list(rows[0].keys()) if rows else []

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)

    writer.writerow(columns)
    for row in rows:
        writer.writerow([format_cell(row.get(col)) for col in columns])

    content = output.getvalue()
    if content.endswith("\n"):
        content = content[:-1]
    return content
