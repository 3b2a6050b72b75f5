from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal
from datetime import datetime, timezone
from enum import Enum
import secrets


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_epoch() -> str:
    return secrets.token_hex(6)


class Status(str, Enum):
    ONLINE = "online"
    PAUSED = "paused"


class HistoryCategory(str, Enum):
    RECEIVED = "received"
    SENT = "sent"


class QueueEntry(BaseModel):
    key: str
    epoch: str = Field(default_factory=new_epoch, description="Identifies the burst")
    events: List[Dict[str, Any]] = Field(default_factory=list)


class DispatchOutcome(BaseModel):
    success: bool
    status_code: int | None = None
    body: Any = None
    error_detail: str | None = None


class HistoryRecord(BaseModel):
    timestamp: str = Field(default_factory=utc_now_iso)
    category: HistoryCategory
    data: Dict[str, Any] = Field(default_factory=dict)
    outcome: DispatchOutcome | None = None


class AdmissionResult(BaseModel):
    state: Literal["queued", "suppressed", "status_updated"]
    key: str
    epoch: str | None = None
    status: Status | None = None
