"""
Pydantic schemas for the Code Red API.

Record schemas (EventRecord, PackRecord, ParticipantLocation) are what the
services return; they are built straight from storage rows. Request schemas
are the bodies accepted by the routers. Range checks on stage / estimate
minutes live in the services, not here, so the same rules apply to Python
callers and HTTP callers alike.
"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


# =============================================================================
# RECORDS
# =============================================================================

class LocationHistoryEntry(BaseModel):
    """One move of an incident from one location to another"""
    timestamp: datetime
    from_location: str
    to_location: str

    def describe(self) -> str:
        return f'{self.timestamp.isoformat()}: Moved from "{self.from_location}" to "{self.to_location}"'


class PackRecord(BaseModel):
    """A pack of blood products and where it is in the 6-stage workflow"""
    id: int
    code_red_event_id: int
    name: str                                   # "Pack A"
    composition: str                            # "6 FFP, 2 Cryo, 1 Platelets"
    ffp: int = 0
    cryo: int = 0
    platelets: int = 0
    current_stage: int = 1                      # 1-6
    estimated_ready_time: Optional[datetime] = None

    # Stage timestamps - last time each stage was entered
    order_received_time: Optional[datetime] = None
    ready_for_collection_time: Optional[datetime] = None
    runner_en_route_to_lab_time: Optional[datetime] = None
    order_collected_time: Optional[datetime] = None
    runner_en_route_to_clinical_time: Optional[datetime] = None
    product_arrived_time: Optional[datetime] = None

    # Runner arrival estimates (stage 3 -> lab, stage 5 -> clinical)
    runner_estimated_arrival_at_lab: Optional[datetime] = None
    runner_estimated_arrival_at_clinical: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventRecord(BaseModel):
    """A Code Red activation with its current packs"""
    id: int
    activation_time: datetime
    lab_type: str                               # "Main Lab", "Satellite Lab"
    location: str
    patient_mrn: str
    original_location: str
    location_history: List[LocationHistoryEntry] = []
    assigned_runner_id: Optional[str] = None
    assigned_clinician_id: Optional[str] = None
    is_active: bool = True
    deactivation_time: Optional[datetime] = None
    packs: List[PackRecord] = []

    class Config:
        from_attributes = True


class ParticipantLocation(BaseModel):
    """Latest known position of a runner / lab / clinician"""
    id: int
    user_id: str
    user_type: str                              # runner, lab, clinician
    latitude: str                               # decimal degrees, as sent
    longitude: str
    accuracy: Optional[float] = None            # metres, as the device reports it
    last_updated: datetime
    is_active: bool = True

    class Config:
        from_attributes = True


class PackArrival(BaseModel):
    """Runner ETA for a pack's current leg"""
    pack_id: int
    stage: int
    destination: Optional[str] = None           # "lab", "clinical" or None outside stages 3/5
    site: Optional[str] = None
    estimated_minutes: Optional[int] = None
    estimated_arrival: Optional[datetime] = None


# =============================================================================
# REQUEST BODIES
# =============================================================================

class CodeRedCreate(BaseModel):
    """Activate a new Code Red"""
    lab_type: str
    location: str
    patient_mrn: str
    activation_time: Optional[datetime] = None  # Defaults to now
    assigned_runner_id: Optional[str] = None
    assigned_clinician_id: Optional[str] = None


class AssignRequest(BaseModel):
    user_id: str
    user_type: str                              # runner or clinician


class LabUpdate(BaseModel):
    lab_type: str


class CodeRedLocationUpdate(BaseModel):
    code_red_id: int
    new_location: str


class PackCreate(BaseModel):
    code_red_event_id: int
    name: str
    composition: str
    ffp: int = 0
    cryo: int = 0
    platelets: int = 0


class PackStageUpdate(BaseModel):
    pack_id: int
    stage: int


class PackEstimateUpdate(BaseModel):
    pack_id: int
    estimated_minutes: Optional[int] = None     # 1-120, None clears


class PackArrivalRequest(BaseModel):
    runner_id: str
    lab_site: Optional[str] = None              # Defaults to configured lab site
    clinical_site: Optional[str] = None         # Defaults to configured clinical site


class LocationUpdate(BaseModel):
    user_id: str
    user_type: str
    latitude: str
    longitude: str
    accuracy: Optional[float] = None


class ArrivalEstimateResponse(BaseModel):
    estimated_minutes: Optional[int] = None
