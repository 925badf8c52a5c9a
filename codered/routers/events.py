"""
Code Red router - activation lifecycle

Endpoints:
    GET    /api/code-red/active                       - First active event
    GET    /api/code-red/all-active                   - All active events
    GET    /api/code-red/audit/all                    - Every event, newest first
    GET    /api/code-red/user/{user_id}/{user_type}   - Active events assigned to a user
    GET    /api/code-red/{id}                         - Active event by id
    POST   /api/code-red                              - Activate
    POST   /api/code-red/{id}/assign                  - Assign runner / clinician
    POST   /api/code-red/{id}/deactivate              - Stand down (kept for audit)
    DELETE /api/code-red/{id}                         - Remove (created in error)
    PATCH  /api/code-red/{id}/lab                     - Change lab
    PATCH  /api/code-red/location                     - Move patient
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_event_registry
from ..exceptions import NotFoundError, ValidationError
from ..schemas import AssignRequest, CodeRedCreate, CodeRedLocationUpdate, EventRecord, LabUpdate
from ..services.event_registry import EventRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/active", response_model=Optional[EventRecord])
async def get_active_event(registry: EventRegistry = Depends(get_event_registry)):
    return registry.get_active()


@router.get("/all-active", response_model=List[EventRecord])
async def list_active_events(registry: EventRegistry = Depends(get_event_registry)):
    return registry.list_active()


@router.get("/audit/all", response_model=List[EventRecord])
async def list_events_for_audit(registry: EventRegistry = Depends(get_event_registry)):
    """Active and completed events for the audit trail"""
    return registry.list_for_audit()


@router.get("/user/{user_id}/{user_type}", response_model=List[EventRecord])
async def list_events_for_user(
    user_id: str,
    user_type: str,
    registry: EventRegistry = Depends(get_event_registry),
):
    try:
        return registry.list_for_participant(user_id, user_type)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/location", response_model=EventRecord)
async def update_event_location(
    data: CodeRedLocationUpdate,
    registry: EventRegistry = Depends(get_event_registry),
):
    try:
        return registry.update_location(data.code_red_id, data.new_location)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{event_id}", response_model=EventRecord)
async def get_event(event_id: int, registry: EventRegistry = Depends(get_event_registry)):
    event = registry.get_by_id(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Code Red not found or inactive")
    return event


@router.post("", response_model=EventRecord)
async def create_event(data: CodeRedCreate, registry: EventRegistry = Depends(get_event_registry)):
    try:
        return registry.create_event(
            lab_type=data.lab_type,
            location=data.location,
            patient_mrn=data.patient_mrn,
            activation_time=data.activation_time,
            assigned_runner_id=data.assigned_runner_id,
            assigned_clinician_id=data.assigned_clinician_id,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{event_id}/assign", response_model=Optional[EventRecord])
async def assign_user(
    event_id: int,
    data: AssignRequest,
    registry: EventRegistry = Depends(get_event_registry),
):
    """Assign a user; returns the event, or null if it is missing or inactive"""
    try:
        registry.assign(event_id, data.user_type, data.user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return registry.get_by_id(event_id)


@router.post("/{event_id}/deactivate")
async def deactivate_event(event_id: int, registry: EventRegistry = Depends(get_event_registry)):
    registry.deactivate(event_id)
    return {"message": "Code Red event deactivated"}


@router.delete("/{event_id}")
async def delete_event(event_id: int, registry: EventRegistry = Depends(get_event_registry)):
    registry.delete(event_id)
    return {"message": "Code Red event deleted"}


@router.patch("/{event_id}/lab")
async def update_event_lab(
    event_id: int,
    data: LabUpdate,
    registry: EventRegistry = Depends(get_event_registry),
):
    try:
        registry.update_lab(event_id, data.lab_type)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Lab updated successfully"}
