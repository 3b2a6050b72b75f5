from pydantic import BaseModel
from typing import Any, Dict, List
from ..event_models import Status

class AdmissionResponse(BaseModel):
    status: str = "success"
    message: str
    data: Dict[str, Any]

class KeyStatus(BaseModel):
    key: str
    status: Status
    timestamp: str

class HistoryResponse(BaseModel):
    received: List[Dict[str, Any]]
    sent: List[Dict[str, Any]]
    status: List[KeyStatus]

class StatusData(BaseModel):
    key: str
    current_status: Status

class StatusResponse(BaseModel):
    status: str = "success"
    data: StatusData

class ClearResponse(BaseModel):
    status: str = "success"
    message: str
