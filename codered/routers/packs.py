"""
Packs router - product packs and their stages

Endpoints:
    POST   /api/packs                 - Create a pack under a Code Red
    GET    /api/packs/{id}            - Single pack
    PATCH  /api/packs/stage           - Move to any stage 1-6
    PATCH  /api/packs/estimate        - Set / clear lab ready estimate (1-120 min)
    POST   /api/packs/{id}/arrival    - Recompute runner ETA for stages 3 / 5
    DELETE /api/packs/{id}            - Remove (created in error)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_eta_service, get_pack_tracker
from ..exceptions import NotFoundError, RangeError, ValidationError
from ..schemas import (
    PackArrival, PackArrivalRequest, PackCreate, PackEstimateUpdate, PackRecord, PackStageUpdate,
)
from ..services.location.eta import EtaService
from ..services.pack_tracker import PackTracker

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=PackRecord)
async def create_pack(data: PackCreate, tracker: PackTracker = Depends(get_pack_tracker)):
    try:
        return tracker.create_pack(
            event_id=data.code_red_event_id,
            name=data.name,
            composition=data.composition,
            ffp=data.ffp,
            cryo=data.cryo,
            platelets=data.platelets,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/stage", response_model=PackRecord)
async def update_pack_stage(data: PackStageUpdate, tracker: PackTracker = Depends(get_pack_tracker)):
    try:
        return tracker.set_stage(data.pack_id, data.stage)
    except RangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/estimate", response_model=PackRecord)
async def update_pack_estimate(data: PackEstimateUpdate, tracker: PackTracker = Depends(get_pack_tracker)):
    try:
        return tracker.set_estimate(data.pack_id, data.estimated_minutes)
    except RangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{pack_id}", response_model=PackRecord)
async def get_pack(pack_id: int, tracker: PackTracker = Depends(get_pack_tracker)):
    pack = tracker.get_pack(pack_id)
    if not pack:
        raise HTTPException(status_code=404, detail="Pack not found")
    return pack


@router.post("/{pack_id}/arrival", response_model=PackArrival)
async def refresh_pack_arrival(
    pack_id: int,
    data: PackArrivalRequest,
    eta: EtaService = Depends(get_eta_service),
):
    """
    Recompute the runner's ETA for the pack's current leg.

    Stage 3 targets the lab site, stage 5 the clinical site. Other stages
    return no estimate.
    """
    try:
        return eta.refresh_pack_arrival(
            pack_id,
            data.runner_id,
            lab_target=data.lab_site,
            clinical_target=data.clinical_site,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{pack_id}")
async def delete_pack(pack_id: int, tracker: PackTracker = Depends(get_pack_tracker)):
    try:
        tracker.delete_pack(pack_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Pack deleted successfully"}
