"""Collapse a burst of buffered events into one aggregate payload."""
from typing import Any, Dict, List
from ...event_models import QueueEntry, utc_now_iso

MESSAGE_FIELD = "message"
MESSAGE_SEPARATOR = "\n\n"


def merge_events(entry: QueueEntry, timestamp: str | None = None) -> Dict[str, Any]:
    """
    Build the aggregate for a drained queue entry.

    A single event is forwarded as-is. For a burst, the ``message`` text of
    every event is joined with a blank line into one synthetic event, while
    all other fields come from the last event only. Envelope fields always
    win over event fields of the same name.

    Args:
        entry: Drained queue entry with at least one event
        timestamp: ISO timestamp for the aggregate (defaults to now)

    Returns:
        Aggregate payload ready for dispatch
    """
    if not entry.events:
        raise ValueError(f"cannot merge empty queue for key {entry.key!r}")

    last = entry.events[-1]
    if len(entry.events) == 1:
        body = dict(last)
        merged: List[Dict[str, Any]] = [dict(last)]
    else:
        joined = MESSAGE_SEPARATOR.join(_message_text(e) for e in entry.events)
        body = {k: v for k, v in last.items() if k != MESSAGE_FIELD}
        merged = [{MESSAGE_FIELD: joined}]

    body.update(
        key=entry.key,
        epoch=entry.epoch,
        merged_events=merged,
        timestamp=timestamp or utc_now_iso(),
    )
    return body


def _message_text(event: Dict[str, Any]) -> str:
    value = event.get(MESSAGE_FIELD)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
