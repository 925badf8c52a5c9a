"""
Runner arrival estimates for packs in transit.

Only two stages have a runner walking somewhere:
    stage 3 (runner en route to lab)       -> target is the lab site
    stage 5 (runner en route to clinical)  -> target is the clinical site

refresh_pack_arrival() asks the location registry for walking minutes from
the runner's last fix to that site and records now + minutes on the pack.
"""

import logging
from datetime import timedelta
from typing import Dict, Optional, Tuple, Union

from ...clock import Clock, utc_now
from ...exceptions import NotFoundError, ValidationError
from ...schemas import PackArrival
from ..pack_tracker import PackStage, PackTracker
from .registry import LocationRegistry

logger = logging.getLogger(__name__)

Coordinates = Tuple[float, float]
SiteTarget = Union[str, Coordinates, None]


class EtaService:
    def __init__(
        self,
        locations: LocationRegistry,
        packs: PackTracker,
        sites: Dict[str, Coordinates],
        default_lab_site: str = "Main Lab",
        default_clinical_site: str = "ICU",
        clock: Clock = utc_now,
    ):
        self.locations = locations
        self.packs = packs
        self.sites = sites
        self.default_lab_site = default_lab_site
        self.default_clinical_site = default_clinical_site
        self.clock = clock

    def resolve_site(self, target: SiteTarget, default: str) -> Tuple[str, Coordinates]:
        """Site name or explicit (lat, lng) -> (label, coordinates)"""
        if target is None:
            target = default
        if isinstance(target, str):
            if target not in self.sites:
                raise ValidationError([f"Unknown site '{target}'"])
            return target, self.sites[target]
        lat, lng = target
        return f"{lat},{lng}", (float(lat), float(lng))

    def target_for_stage(
        self,
        stage: int,
        lab_target: SiteTarget = None,
        clinical_target: SiteTarget = None,
    ) -> Optional[Tuple[str, str, Coordinates]]:
        """(destination, site label, coordinates) for stages 3 and 5, else None"""
        if stage == PackStage.RUNNER_EN_ROUTE_TO_LAB:
            site, coords = self.resolve_site(lab_target, self.default_lab_site)
            return "lab", site, coords
        if stage == PackStage.RUNNER_EN_ROUTE_TO_CLINICAL:
            site, coords = self.resolve_site(clinical_target, self.default_clinical_site)
            return "clinical", site, coords
        return None

    def refresh_pack_arrival(
        self,
        pack_id: int,
        runner_id: str,
        lab_target: SiteTarget = None,
        clinical_target: SiteTarget = None,
    ) -> PackArrival:
        pack = self.packs.get_pack(pack_id)
        if pack is None:
            raise NotFoundError("Pack", pack_id)

        target = self.target_for_stage(pack.current_stage, lab_target, clinical_target)
        if target is None:
            return PackArrival(pack_id=pack_id, stage=pack.current_stage)

        destination, site, (lat, lng) = target
        minutes = self.locations.estimate_arrival_minutes(runner_id, lat, lng)
        if minutes is None:
            logger.debug(f"Pack {pack_id}: no estimate for runner {runner_id}")
            return PackArrival(pack_id=pack_id, stage=pack.current_stage, destination=destination, site=site)

        arrival = self.clock() + timedelta(minutes=minutes)
        if destination == "lab":
            self.packs.set_arrival_estimates(pack_id, lab=arrival)
        else:
            self.packs.set_arrival_estimates(pack_id, clinical=arrival)

        logger.info(f"Pack {pack_id}: runner {runner_id} arriving at {site} in {minutes} min")
        return PackArrival(
            pack_id=pack_id,
            stage=pack.current_stage,
            destination=destination,
            site=site,
            estimated_minutes=minutes,
            estimated_arrival=arrival,
        )
