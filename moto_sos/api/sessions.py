from fastapi import APIRouter, HTTPException
from typing import List

from moto_sos.api.deps import ControllerDep
from moto_sos.models.session import EmergencySession

router = APIRouter()

@router.get("", response_model=List[EmergencySession])
async def list_sessions(controller: ControllerDep):
    return controller.session_store.list_sessions()

@router.get("/{session_id}", response_model=EmergencySession)
async def get_session(controller: ControllerDep, session_id: str):
    session = controller.session_store.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session
