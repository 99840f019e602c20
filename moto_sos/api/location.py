from fastapi import APIRouter, HTTPException
from typing import List

from moto_sos.api.deps import ControllerDep
from moto_sos.core.controller import EmergencyController
from moto_sos.models.hospital import Hospital
from moto_sos.models.location import LocationResponse

router = APIRouter()

def _location_response(controller: EmergencyController) -> LocationResponse:
    location = controller.location
    return LocationResponse(
        location=location,
        accuracy_level=location.accuracy_level if location else None,
        error=controller.location_error,
        is_loading=controller.is_loading_location
    )

@router.get("", response_model=LocationResponse)
async def get_location(controller: ControllerDep):
    return _location_response(controller)

@router.post("/refresh", response_model=LocationResponse)
async def refresh_location(controller: ControllerDep):
    await controller.refresh_location()

    if controller.location_error:
        raise HTTPException(status_code=503, detail=controller.location_error)

    return _location_response(controller)

@router.get("/hospitals", response_model=List[Hospital])
async def get_nearby_hospitals(controller: ControllerDep):
    return controller.nearby_hospitals

@router.post("/hospitals/refresh", response_model=List[Hospital])
async def refresh_nearby_hospitals(controller: ControllerDep):
    if controller.location is None:
        raise HTTPException(status_code=409, detail="Location not available")

    return await controller.find_nearby_hospitals()
