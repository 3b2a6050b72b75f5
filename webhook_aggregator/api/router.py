from fastapi import APIRouter, Body, HTTPException, Depends
from typing import Any, Dict
from .schemas import AdmissionResponse, ClearResponse, HistoryResponse, StatusResponse, StatusData
from ..services.aggregation_service import AggregationService, get_aggregation_service
from ..auth.api_key import verify_api_key
from ..errors import AdmissionValidationError

router = APIRouter(prefix="/v1", dependencies=[Depends(verify_api_key)])

KEY_FIELD = "key"
CONTROL_FIELD = "status"


@router.post("/webhook", response_model=AdmissionResponse)
async def receive_webhook(
    payload: Dict[str, Any] = Body(...),
    service: AggregationService = Depends(get_aggregation_service),
):
    fields = dict(payload)
    raw_key = fields.pop(KEY_FIELD, None)
    control_status = fields.pop(CONTROL_FIELD, None)
    # Keys are identifiers: non-empty strings or non-zero integers
    if isinstance(raw_key, bool) or not isinstance(raw_key, (str, int)) or not raw_key:
        raise HTTPException(400, detail="key must be a non-empty string or non-zero integer")
    key = str(raw_key)

    try:
        result = await service.admit(key, fields, control_status=control_status)
    except AdmissionValidationError as e:
        raise HTTPException(400, detail=str(e))

    if result.state == "status_updated":
        return AdmissionResponse(
            message=f"Status of key {key} set to {result.status.value}",
            data={"key": key, "status": result.status.value},
        )
    if result.state == "suppressed":
        return AdmissionResponse(
            message="Event received but not processed - key is paused",
            data={"key": key, "current_status": result.status.value},
        )
    return AdmissionResponse(
        message="Event queued for aggregation",
        data={**fields, "key": key, "epoch": result.epoch},
    )


@router.get("/history", response_model=HistoryResponse)
async def get_history(service: AggregationService = Depends(get_aggregation_service)):
    return HistoryResponse(**await service.history_snapshot())


@router.get("/status/{key}", response_model=StatusResponse)
async def get_status(key: str, service: AggregationService = Depends(get_aggregation_service)):
    status = await service.get_status(key)
    return StatusResponse(data=StatusData(key=key, current_status=status))


@router.post("/clear-logs", response_model=ClearResponse)
async def clear_logs(service: AggregationService = Depends(get_aggregation_service)):
    await service.clear_all()
    return ClearResponse(message="History, queues, statuses and timers cleared")
