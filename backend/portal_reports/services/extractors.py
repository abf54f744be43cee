import logging
from typing import Any, Callable, List, Optional, Sequence

from portal_reports.core.exceptions import MalformedResponseError
from portal_reports.services.normalizer import Record

logger = logging.getLogger(__name__)

Extractor = Callable[[Any], Optional[List[Record]]]


def from_data_field(body: Any) -> Optional[List[Record]]:
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return None


def from_top_level_list(body: Any) -> Optional[List[Record]]:
    if isinstance(body, list):
        return body
    return None


def from_rows_field(body: Any) -> Optional[List[Record]]:
    if isinstance(body, dict) and isinstance(body.get("rows"), list):
        return body["rows"]
    return None


def flatten_object(body: Any) -> Optional[List[Record]]:
    if not isinstance(body, dict):
        return None
    records: List[Record] = []
    for key, value in body.items():
        if key == "next_start_key":
            continue
        if isinstance(value, dict):
            records.append({"key": key, **value})
        else:
            records.append({"key": key, "value": value})
    return records


EXTRACTORS: Sequence[Extractor] = (
    from_data_field,
    from_top_level_list,
    from_rows_field,
    flatten_object,
)


def extract_records(body: Any, extractors: Sequence[Extractor] = EXTRACTORS) -> List[Record]:
    for extractor in extractors:
        records = extractor(body)
        if records is None:
            continue
        if extractor is flatten_object:
            logger.warning(
                "Unrecognised report payload with keys %s; flattened into %s record(s).",
                sorted(body)[:10],
                len(records),
            )
        return records
    raise MalformedResponseError(f"Cannot extract records from {type(body).__name__} payload")


def extract_cursor(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        return body.get("next_start_key") or None
    return None
