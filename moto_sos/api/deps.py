from typing import Annotated
from fastapi import Depends, Request

from moto_sos.core.controller import EmergencyController

def get_controller(request: Request) -> EmergencyController:
    return request.app.state.controller

ControllerDep = Annotated[EmergencyController, Depends(get_controller)]
