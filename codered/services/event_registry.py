"""
Event Registry - Code Red activations

Owns the event record: current location and its move history, runner /
clinician assignment, active flag. Ending an event is either
    deactivate() - soft; kept for the audit trail, packs untouched
    delete()     - hard; packs removed first, nothing left behind

assign(), update_lab() and deactivate() on an unknown id do nothing rather
than raise. Callers have relied on that, so it stays.
"""

import logging
from datetime import datetime
from typing import List, Optional

from ..clock import Clock, utc_now
from ..exceptions import NotFoundError, ValidationError
from ..schemas import EventRecord, LocationHistoryEntry
from ..storage import EVENTS, PACKS, Storage

logger = logging.getLogger(__name__)

ROLE_FIELDS = {
    "runner": "assigned_runner_id",
    "clinician": "assigned_clinician_id",
}


def _blank(value: Optional[str]) -> bool:
    return not isinstance(value, str) or not value.strip()


def _role_field(role: str) -> str:
    if role not in ROLE_FIELDS:
        raise ValidationError([f"Invalid user type '{role}'. Must be 'runner' or 'clinician'"])
    return ROLE_FIELDS[role]


class EventRegistry:
    def __init__(self, storage: Storage, clock: Clock = utc_now):
        self.storage = storage
        self.clock = clock

    def _with_packs(self, row: dict) -> EventRecord:
        packs = self.storage.find(PACKS, code_red_event_id=row["id"])
        return EventRecord.model_validate({**row, "packs": packs})

    # =========================================================================
    # CREATE
    # =========================================================================

    def create_event(
        self,
        lab_type: str,
        location: str,
        patient_mrn: str,
        activation_time: Optional[datetime] = None,
        assigned_runner_id: Optional[str] = None,
        assigned_clinician_id: Optional[str] = None,
    ) -> EventRecord:
        errors = []
        if _blank(lab_type):
            errors.append("Lab type is required")
        if _blank(location):
            errors.append("Location is required")
        if _blank(patient_mrn):
            errors.append("Patient MRN is required")
        if errors:
            raise ValidationError(errors)

        location = location.strip()
        row = self.storage.insert(EVENTS, {
            "activation_time": activation_time or self.clock(),
            "lab_type": lab_type.strip(),
            "location": location,
            "patient_mrn": patient_mrn.strip(),
            "original_location": location,
            "location_history": [],
            "assigned_runner_id": assigned_runner_id or None,
            "assigned_clinician_id": assigned_clinician_id or None,
            "is_active": True,
            "deactivation_time": None,
        })
        logger.info(f"Code Red {row['id']} activated at {location} ({row['lab_type']})")
        return self._with_packs(row)

    # =========================================================================
    # READ
    # =========================================================================

    def get_active(self) -> Optional[EventRecord]:
        """First active event by id, or None"""
        row = self.storage.find_one(EVENTS, is_active=True)
        return self._with_packs(row) if row else None

    def list_active(self) -> List[EventRecord]:
        return [self._with_packs(row) for row in self.storage.find(EVENTS, is_active=True)]

    def get_by_id(self, event_id: int) -> Optional[EventRecord]:
        """Active event by id. Deactivated events only show up in list_for_audit()."""
        row = self.storage.get(EVENTS, event_id)
        if row is None or not row["is_active"]:
            return None
        return self._with_packs(row)

    def list_for_audit(self) -> List[EventRecord]:
        """Every event, active or not, most recent activation first"""
        rows = self.storage.find(EVENTS, order_by="activation_time", descending=True)
        return [self._with_packs(row) for row in rows]

    def list_for_participant(self, participant_id: str, role: str) -> List[EventRecord]:
        """Active events the participant is assigned to in the given role"""
        field = _role_field(role)
        rows = self.storage.find(EVENTS, is_active=True, **{field: participant_id})
        return [self._with_packs(row) for row in rows]

    # =========================================================================
    # UPDATE
    # =========================================================================

    def assign(self, event_id: int, role: str, participant_id: str) -> None:
        """Overwrite the runner or clinician on an event"""
        field = _role_field(role)
        if _blank(participant_id):
            raise ValidationError(["User ID is required"])

        if self.storage.update(EVENTS, event_id, {field: participant_id}) is None:
            logger.warning(f"Assign {role} {participant_id}: Code Red {event_id} not found, ignoring")
            return
        logger.info(f"Code Red {event_id}: {role} assigned to {participant_id}")

    def update_location(self, event_id: int, new_location: str) -> EventRecord:
        """Move the event and append the move to its history, as one unit"""
        if _blank(new_location):
            raise ValidationError(["Location is required"])
        new_location = new_location.strip()

        with self.storage.transaction():
            row = self.storage.get(EVENTS, event_id)
            if row is None:
                raise NotFoundError("Code Red event", event_id)

            entry = LocationHistoryEntry(
                timestamp=self.clock(),
                from_location=row["location"],
                to_location=new_location,
            )
            row = self.storage.update(EVENTS, event_id, {
                "location": new_location,
                "location_history": list(row["location_history"] or []) + [entry.model_dump(mode="json")],
            })

        logger.info(f"Code Red {event_id} moved: {entry.from_location} -> {entry.to_location}")
        return self._with_packs(row)

    def update_lab(self, event_id: int, lab_type: str) -> None:
        if _blank(lab_type):
            raise ValidationError(["Lab type is required"])

        if self.storage.update(EVENTS, event_id, {"lab_type": lab_type.strip()}) is None:
            logger.warning(f"Update lab: Code Red {event_id} not found, ignoring")
            return
        logger.info(f"Code Red {event_id} lab changed to {lab_type.strip()}")

    # =========================================================================
    # END OF LIFE
    # =========================================================================

    def deactivate(self, event_id: int) -> None:
        """Mark inactive and stamp deactivation_time (re-stamped if already inactive)"""
        row = self.storage.update(EVENTS, event_id, {
            "is_active": False,
            "deactivation_time": self.clock(),
        })
        if row is None:
            logger.warning(f"Deactivate: Code Red {event_id} not found, ignoring")
            return
        logger.info(f"Code Red {event_id} deactivated")

    def delete(self, event_id: int) -> None:
        """Remove the event and all its packs. Safe to repeat."""
        with self.storage.transaction():
            pack_count = self.storage.delete_where(PACKS, code_red_event_id=event_id)
            existed = self.storage.delete(EVENTS, event_id)

        if existed:
            logger.info(f"Code Red {event_id} deleted with {pack_count} pack(s)")
        else:
            logger.debug(f"Delete: Code Red {event_id} already gone ({pack_count} orphan pack(s) removed)")
