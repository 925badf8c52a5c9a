"""
Pack Tracker - the per-pack stage workflow

Stages:
    1  Order received
    2  Ready for collection
    3  Runner en route to lab
    4  Order collected
    5  Runner en route to clinical area
    6  Product arrived

set_stage() accepts any stage 1-6 from any current stage. Operators skip
ahead and step back to correct mistakes, so there is no transition table.
Entering a stage stamps its timestamp field; stepping back leaves later
stages' timestamps as they were. A populated timestamp means "entered at
some point", not "entered after the previous stage".
"""

import logging
from datetime import datetime, timedelta
from enum import IntEnum
from typing import List, Optional

from ..clock import Clock, utc_now
from ..exceptions import NotFoundError, RangeError, ValidationError
from ..schemas import PackRecord
from ..storage import EVENTS, PACKS, Storage

logger = logging.getLogger(__name__)

MIN_ESTIMATE_MINUTES = 1
MAX_ESTIMATE_MINUTES = 120


class PackStage(IntEnum):
    ORDER_RECEIVED = 1
    READY_FOR_COLLECTION = 2
    RUNNER_EN_ROUTE_TO_LAB = 3
    ORDER_COLLECTED = 4
    RUNNER_EN_ROUTE_TO_CLINICAL = 5
    PRODUCT_ARRIVED = 6

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]

    @property
    def timestamp_field(self) -> str:
        return STAGE_TIMESTAMP_FIELDS[self]


STAGE_LABELS = {
    PackStage.ORDER_RECEIVED: "Order received",
    PackStage.READY_FOR_COLLECTION: "Ready for collection",
    PackStage.RUNNER_EN_ROUTE_TO_LAB: "Runner en route to lab",
    PackStage.ORDER_COLLECTED: "Order collected",
    PackStage.RUNNER_EN_ROUTE_TO_CLINICAL: "Runner en route to clinical area",
    PackStage.PRODUCT_ARRIVED: "Product arrived",
}

STAGE_TIMESTAMP_FIELDS = {
    PackStage.ORDER_RECEIVED: "order_received_time",
    PackStage.READY_FOR_COLLECTION: "ready_for_collection_time",
    PackStage.RUNNER_EN_ROUTE_TO_LAB: "runner_en_route_to_lab_time",
    PackStage.ORDER_COLLECTED: "order_collected_time",
    PackStage.RUNNER_EN_ROUTE_TO_CLINICAL: "runner_en_route_to_clinical_time",
    PackStage.PRODUCT_ARRIVED: "product_arrived_time",
}


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class PackTracker:
    def __init__(self, storage: Storage, clock: Clock = utc_now):
        self.storage = storage
        self.clock = clock

    def create_pack(
        self,
        event_id: int,
        name: str,
        composition: str,
        ffp: int = 0,
        cryo: int = 0,
        platelets: int = 0,
    ) -> PackRecord:
        """
        Create a pack under an existing event, starting at stage 1.

        The parent only has to exist; deactivated events still accept packs.
        """
        errors = []
        if not name or not name.strip():
            errors.append("Pack name is required")
        if not composition or not composition.strip():
            errors.append("Composition is required")
        for label, count in (("ffp", ffp), ("cryo", cryo), ("platelets", platelets)):
            if not _is_int(count) or count < 0:
                errors.append(f"{label} must be a whole number >= 0")
        if errors:
            raise ValidationError(errors)

        # Parent check and insert are one unit; a delete in between must not leave an orphan
        with self.storage.transaction():
            if self.storage.get(EVENTS, event_id) is None:
                raise NotFoundError("Code Red event", event_id)

            now = self.clock()
            row = self.storage.insert(PACKS, {
                "code_red_event_id": event_id,
                "name": name.strip(),
                "composition": composition.strip(),
                "ffp": ffp,
                "cryo": cryo,
                "platelets": platelets,
                "current_stage": int(PackStage.ORDER_RECEIVED),
                "estimated_ready_time": None,
                "order_received_time": now,
                "ready_for_collection_time": None,
                "runner_en_route_to_lab_time": None,
                "order_collected_time": None,
                "runner_en_route_to_clinical_time": None,
                "product_arrived_time": None,
                "runner_estimated_arrival_at_lab": None,
                "runner_estimated_arrival_at_clinical": None,
            })
        logger.info(f"Pack {row['id']} '{row['name']}' created for Code Red {event_id}")
        return PackRecord.model_validate(row)

    def get_pack(self, pack_id: int) -> Optional[PackRecord]:
        row = self.storage.get(PACKS, pack_id)
        return PackRecord.model_validate(row) if row else None

    def list_packs(self, event_id: int) -> List[PackRecord]:
        return [PackRecord.model_validate(row) for row in self.storage.find(PACKS, code_red_event_id=event_id)]

    def set_stage(self, pack_id: int, stage: int) -> PackRecord:
        """Move a pack to any stage 1-6 and stamp that stage's timestamp"""
        if not _is_int(stage) or not PackStage.ORDER_RECEIVED <= stage <= PackStage.PRODUCT_ARRIVED:
            raise RangeError("stage", stage, int(PackStage.ORDER_RECEIVED), int(PackStage.PRODUCT_ARRIVED))

        target = PackStage(stage)
        row = self.storage.update(PACKS, pack_id, {
            "current_stage": int(target),
            target.timestamp_field: self.clock(),
        })
        if row is None:
            raise NotFoundError("Pack", pack_id)

        logger.info(f"Pack {pack_id} moved to stage {int(target)} ({target.label})")
        return PackRecord.model_validate(row)

    def set_estimate(self, pack_id: int, minutes: Optional[int]) -> PackRecord:
        """Set the lab's ready-time estimate to now + minutes, or clear it with None"""
        if minutes is None:
            estimated_ready_time = None
        else:
            if not _is_int(minutes) or not MIN_ESTIMATE_MINUTES <= minutes <= MAX_ESTIMATE_MINUTES:
                raise RangeError("estimated_minutes", minutes, MIN_ESTIMATE_MINUTES, MAX_ESTIMATE_MINUTES)
            estimated_ready_time = self.clock() + timedelta(minutes=minutes)

        row = self.storage.update(PACKS, pack_id, {"estimated_ready_time": estimated_ready_time})
        if row is None:
            raise NotFoundError("Pack", pack_id)

        if estimated_ready_time is None:
            logger.info(f"Pack {pack_id} ready estimate cleared")
        else:
            logger.info(f"Pack {pack_id} estimated ready in {minutes} min")
        return PackRecord.model_validate(row)

    def set_arrival_estimates(
        self,
        pack_id: int,
        lab: Optional[datetime] = None,
        clinical: Optional[datetime] = None,
    ) -> PackRecord:
        """Record runner arrival estimates; an omitted one keeps its stored value"""
        values = {}
        if lab is not None:
            values["runner_estimated_arrival_at_lab"] = lab
        if clinical is not None:
            values["runner_estimated_arrival_at_clinical"] = clinical

        row = self.storage.update(PACKS, pack_id, values)
        if row is None:
            raise NotFoundError("Pack", pack_id)
        return PackRecord.model_validate(row)

    def delete_pack(self, pack_id: int) -> None:
        if not self.storage.delete(PACKS, pack_id):
            raise NotFoundError("Pack", pack_id)
        logger.info(f"Pack {pack_id} deleted")
