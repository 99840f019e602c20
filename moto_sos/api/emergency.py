from fastapi import APIRouter, HTTPException, status
from typing import Any

from moto_sos.api.deps import ControllerDep
from moto_sos.exceptions import EmergencyStateError
from moto_sos.models.hospital import CallResult
from moto_sos.models.session import ConfirmRequest

router = APIRouter()

@router.get("/status")
async def get_emergency_status(controller: ControllerDep) -> dict[str, Any]:
    session = controller.active_session
    return {
        **controller.status_summary(),
        "active_session": session.model_dump(mode="json", by_alias=True) if session else None
    }

@router.post("/press", status_code=status.HTTP_202_ACCEPTED)
async def press_emergency_button(controller: ControllerDep) -> dict[str, Any]:
    try:
        countdown = controller.press()
    except EmergencyStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {
        "message": "Hold to confirm the emergency",
        "state": controller.state.value,
        "countdown": countdown.remaining
    }

@router.post("/release")
async def release_emergency_button(controller: ControllerDep) -> dict[str, Any]:
    return {"state": controller.release().value}

@router.post("/resolve")
async def resolve_emergency(controller: ControllerDep, body: ConfirmRequest) -> dict[str, Any]:
    try:
        session = controller.resolve_emergency(confirmed=body.confirmed)
    except EmergencyStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if session is None:
        raise HTTPException(status_code=400, detail="Confirmation required")

    return {
        "message": "Emergency resolved",
        "session": session.model_dump(mode="json", by_alias=True)
    }

@router.post("/cancel")
async def cancel_emergency(controller: ControllerDep, body: ConfirmRequest) -> dict[str, Any]:
    try:
        session = controller.cancel_emergency(confirmed=body.confirmed)
    except EmergencyStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if session is None:
        raise HTTPException(status_code=400, detail="Confirmation required")

    return {
        "message": "Emergency cancelled",
        "session": session.model_dump(mode="json", by_alias=True)
    }

@router.post("/hospitals/{hospital_id}/call", response_model=CallResult)
async def call_hospital(controller: ControllerDep, hospital_id: str):
    hospital = controller.get_hospital(hospital_id)
    if not hospital:
        raise HTTPException(status_code=404, detail="Hospital not found")

    return await controller.call_hospital(hospital)
