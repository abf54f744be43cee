from typing import Any, Dict, List, Optional, Union

Record = Dict[str, Any]


def _as_number(value: Any) -> Optional[Union[int, float]]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value or None
    if isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
        if number.is_integer():
            number = int(number)
        return number or None
    return None


def derive_durations(record: Record) -> Record:
    """Fill ``talked_duration`` and ``wait_duration`` when upstream left them out."""
    called = _as_number(record.get("called_time"))
    answered = _as_number(record.get("answered_time"))
    hangup = _as_number(record.get("hangup_time"))
    if not record.get("talked_duration") and hangup and answered:
        record["talked_duration"] = hangup - answered
    if not record.get("wait_duration") and called:
        if answered:
            record["wait_duration"] = answered - called
        elif hangup:
            record["wait_duration"] = hangup - called
    return record


def keep_first_element(record: Record, field: str) -> Record:
    history = record.get(field)
    if isinstance(history, list) and len(history) > 1:
        record[field] = [history[0]]
    return record


def first_row_per_call(rows: List[Record]) -> List[Record]:
    # rows without a call_id cannot be grouped and are always kept
    seen = set()
    first_rows: List[Record] = []
    for row in rows:
        call_id = row.get("call_id")
        if not call_id:
            first_rows.append(row)
            continue
        if call_id not in seen:
            seen.add(call_id)
            first_rows.append(row)
    return first_rows


def normalize_queue_calls(rows: List[Record]) -> List[Record]:
    # one row per agent leg upstream
    for row in rows:
        derive_durations(row)
    first_rows = first_row_per_call(rows)
    for row in first_rows:
        keep_first_element(row, "agent_history")
    return first_rows


def normalize_queue_outbound_calls(rows: List[Record]) -> List[Record]:
    for row in rows:
        derive_durations(row)
        keep_first_element(row, "queue_history")
    return rows


def passthrough(rows: List[Record]) -> List[Record]:
    return rows
