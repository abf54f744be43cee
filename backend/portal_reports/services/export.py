import csv
import io
import json
from typing import Any, List

from portal_reports.services.normalizer import Record


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"))
    return value


def to_csv(records: List[Record], delimiter: str = ",") -> str:
    """Serialize rows using the first record's keys as the header."""
    if not records:
        return ""
    header = list(records[0].keys())
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter, lineterminator="\n")
    writer.writerow(header)
    for record in records:
        writer.writerow([_cell(record.get(column)) for column in header])
    return output.getvalue().rstrip("\n")
