"""
Aggregation engine

Coalesces bursts of keyed events into single aggregates:
- Debounce timers per key
- Buffered queues with burst epochs
- Online/paused gate per key
- Bounded audit history
"""

from .aggregator import Aggregator
from .history_log import HistoryLog
from .keyed_timer import KeyedTimer
from .merge import merge_events
from .queue_store import QueueStore
from .status_gate import StatusGate

__all__ = [
    "Aggregator",
    "HistoryLog",
    "KeyedTimer",
    "QueueStore",
    "StatusGate",
    "merge_events",
]
