"""
Location Services Router

Participants push their GPS fix; views pull a walking-time estimate.

Endpoints:
    POST /api/location/update                     - Upsert a participant's position
    GET  /api/location/active                     - All active positions
    GET  /api/location/sites                      - Named hospital sites
    GET  /api/location/estimate/{from_user_id}    - Minutes to ?lat=&lng=
    GET  /api/location/{user_id}                  - A participant's position
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_eta_service, get_location_registry
from ..exceptions import ValidationError
from ..schemas import ArrivalEstimateResponse, LocationUpdate, ParticipantLocation
from ..services.location.eta import EtaService
from ..services.location.registry import LocationRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/update", response_model=ParticipantLocation)
async def update_location(
    data: LocationUpdate,
    registry: LocationRegistry = Depends(get_location_registry),
):
    try:
        return registry.upsert_location(
            user_id=data.user_id,
            user_type=data.user_type,
            latitude=data.latitude,
            longitude=data.longitude,
            accuracy=data.accuracy,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/active", response_model=List[ParticipantLocation])
async def list_active_locations(registry: LocationRegistry = Depends(get_location_registry)):
    return registry.list_active_locations()


@router.get("/sites")
async def list_sites(eta: EtaService = Depends(get_eta_service)):
    """Site directory used for stage 3 / 5 arrival estimates"""
    return {
        "default_lab_site": eta.default_lab_site,
        "default_clinical_site": eta.default_clinical_site,
        "sites": [
            {"name": name, "latitude": lat, "longitude": lng}
            for name, (lat, lng) in eta.sites.items()
        ],
    }


@router.get("/estimate/{from_user_id}", response_model=ArrivalEstimateResponse)
async def estimate_arrival(
    from_user_id: str,
    lat: str = Query(..., description="Target latitude"),
    lng: str = Query(..., description="Target longitude"),
    registry: LocationRegistry = Depends(get_location_registry),
):
    """Walking minutes from the user's last position; null if never reported or the target is invalid"""
    minutes = registry.estimate_arrival_minutes(from_user_id, lat, lng)
    return ArrivalEstimateResponse(estimated_minutes=minutes)


@router.get("/{user_id}", response_model=Optional[ParticipantLocation])
async def get_location(user_id: str, registry: LocationRegistry = Depends(get_location_registry)):
    return registry.get_location(user_id)
