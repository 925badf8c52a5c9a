"""
SQLAlchemy models for Code Red durable storage

Tables:
    - code_red_events: One row per activation (soft-deactivated, never archived)
    - packs: Product packs owned by an event (deleted with it)
    - user_locations: Latest position per participant (upserted, no history)
"""

from datetime import timezone

from sqlalchemy import Column, Integer, Float, String, Boolean, Text, ForeignKey, JSON, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator

from .database import Base


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored as UTC.

    SQLite drops tzinfo on round trip; values come back tagged as UTC so
    they compare cleanly with the service clock.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
            if dialect.name == "sqlite":
                value = value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


HistoryJSON = JSON().with_variant(JSONB(), "postgresql")


class CodeRedEvent(Base):
    """A mass-transfusion activation"""
    __tablename__ = "code_red_events"

    id = Column(Integer, primary_key=True)
    activation_time = Column(UTCDateTime, nullable=False)
    lab_type = Column(Text, nullable=False)                 # "Main Lab" or "Satellite Lab"
    location = Column(Text, nullable=False)                 # Current location
    patient_mrn = Column(Text, nullable=False)
    original_location = Column(Text, nullable=False)        # Never changes after creation
    # [{"timestamp": iso, "from_location": ..., "to_location": ...}, ...] in move order
    location_history = Column(HistoryJSON, nullable=False, default=list)
    assigned_runner_id = Column(Text)
    assigned_clinician_id = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    deactivation_time = Column(UTCDateTime)


class Pack(Base):
    """Blood product pack moving through stages 1-6"""
    __tablename__ = "packs"

    id = Column(Integer, primary_key=True)
    code_red_event_id = Column(Integer, ForeignKey("code_red_events.id"), nullable=False, index=True)
    name = Column(Text, nullable=False)                     # "Pack A"
    composition = Column(Text, nullable=False)              # "6 FFP, 2 Cryo, 1 Platelets"
    ffp = Column(Integer, nullable=False, default=0)
    cryo = Column(Integer, nullable=False, default=0)
    platelets = Column(Integer, nullable=False, default=0)
    current_stage = Column(Integer, nullable=False, default=1)
    estimated_ready_time = Column(UTCDateTime)

    order_received_time = Column(UTCDateTime)               # Stage 1
    ready_for_collection_time = Column(UTCDateTime)         # Stage 2
    runner_en_route_to_lab_time = Column(UTCDateTime)       # Stage 3
    order_collected_time = Column(UTCDateTime)              # Stage 4
    runner_en_route_to_clinical_time = Column(UTCDateTime)  # Stage 5
    product_arrived_time = Column(UTCDateTime)              # Stage 6

    runner_estimated_arrival_at_lab = Column(UTCDateTime)
    runner_estimated_arrival_at_clinical = Column(UTCDateTime)


class UserLocation(Base):
    """Latest GPS fix for a participant"""
    __tablename__ = "user_locations"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(100), unique=True, nullable=False)
    user_type = Column(String(20), nullable=False)          # runner, lab, clinician
    latitude = Column(Text, nullable=False)
    longitude = Column(Text, nullable=False)
    accuracy = Column(Float)                                # GPS accuracy in metres
    last_updated = Column(UTCDateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
