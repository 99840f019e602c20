from fastapi import APIRouter, HTTPException, status
from typing import List

from moto_sos.api.deps import ControllerDep
from moto_sos.models.contact import (
    EmergencyContact,
    EmergencyContactCreate,
    EmergencyContactUpdate,
)

router = APIRouter()

@router.get("", response_model=List[EmergencyContact])
async def list_contacts(controller: ControllerDep):
    return controller.reload_contacts()

@router.get("/primary", response_model=EmergencyContact)
async def get_primary_contact(controller: ControllerDep):
    contact = controller.contact_store.get_primary_contact()
    if not contact:
        raise HTTPException(status_code=404, detail="No primary contact")
    return contact

@router.post("", response_model=EmergencyContact, status_code=status.HTTP_201_CREATED)
async def add_contact(controller: ControllerDep, contact_data: EmergencyContactCreate):
    contact = controller.contact_store.add_contact(contact_data)
    controller.reload_contacts()
    return contact

@router.put("/{contact_id}", response_model=EmergencyContact)
async def update_contact(
    controller: ControllerDep,
    contact_id: str,
    contact_data: EmergencyContactUpdate
):
    contact = controller.contact_store.update_contact(contact_id, contact_data)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")

    controller.reload_contacts()
    return contact

@router.delete("/{contact_id}")
async def delete_contact(controller: ControllerDep, contact_id: str):
    if not controller.contact_store.delete_contact(contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")

    controller.reload_contacts()
    return {"message": "Contact deleted successfully"}
