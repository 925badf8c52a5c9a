"""
Participant location registry.

One row per participant, overwritten on every update. There is no history;
the ETA is recomputed from the latest fix on every request.
"""

import logging
from typing import List, Optional, Tuple

from ...clock import Clock, utc_now
from ...exceptions import ValidationError
from ...schemas import ParticipantLocation
from ...storage import LOCATIONS, Storage
from .distance import haversine_km, travel_minutes

logger = logging.getLogger(__name__)

USER_TYPES = ("runner", "lab", "clinician")


def parse_coordinates(latitude, longitude) -> Tuple[float, float]:
    """Decimal degrees (str or number) -> floats, range-checked"""
    errors = []
    lat = lng = None
    try:
        lat = float(latitude)
        if not -90.0 <= lat <= 90.0:
            errors.append(f"Latitude {latitude} out of range (-90 to 90)")
    except (TypeError, ValueError):
        errors.append(f"Latitude '{latitude}' is not a number")
    try:
        lng = float(longitude)
        if not -180.0 <= lng <= 180.0:
            errors.append(f"Longitude {longitude} out of range (-180 to 180)")
    except (TypeError, ValueError):
        errors.append(f"Longitude '{longitude}' is not a number")

    if errors:
        raise ValidationError(errors)
    return lat, lng


class LocationRegistry:
    def __init__(self, storage: Storage, clock: Clock = utc_now):
        self.storage = storage
        self.clock = clock

    def upsert_location(
        self,
        user_id: str,
        user_type: str,
        latitude: str,
        longitude: str,
        accuracy: Optional[float] = None,
    ) -> ParticipantLocation:
        """Create or overwrite the participant's position"""
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError(["User ID is required"])
        if user_type not in USER_TYPES:
            raise ValidationError([f"Invalid user type '{user_type}'. Must be one of: {', '.join(USER_TYPES)}"])
        parse_coordinates(latitude, longitude)

        user_id = user_id.strip()
        values = {
            "user_id": user_id,
            "user_type": user_type,
            "latitude": str(latitude).strip(),
            "longitude": str(longitude).strip(),
            "accuracy": accuracy,
            "last_updated": self.clock(),
            "is_active": True,
        }

        with self.storage.transaction():
            existing = self.storage.find_one(LOCATIONS, user_id=user_id)
            if existing:
                row = self.storage.update(LOCATIONS, existing["id"], values)
            else:
                row = self.storage.insert(LOCATIONS, values)

        logger.debug(f"Location for {user_type} {user_id}: {values['latitude']}, {values['longitude']}")
        return ParticipantLocation.model_validate(row)

    def get_location(self, user_id: str) -> Optional[ParticipantLocation]:
        row = self.storage.find_one(LOCATIONS, user_id=user_id.strip())
        return ParticipantLocation.model_validate(row) if row else None

    def list_active_locations(self) -> List[ParticipantLocation]:
        return [ParticipantLocation.model_validate(row) for row in self.storage.find(LOCATIONS, is_active=True)]

    def estimate_arrival_minutes(self, from_user_id: str, to_lat, to_lng) -> Optional[int]:
        """
        Walking minutes from the participant's last fix to a target point.

        Returns None if the participant has never reported a location, or if
        the target is not a valid coordinate pair.
        """
        location = self.get_location(from_user_id)
        if location is None:
            return None

        try:
            target_lat, target_lng = parse_coordinates(to_lat, to_lng)
        except ValidationError as e:
            logger.debug(f"ETA {from_user_id}: no estimate for target ({to_lat}, {to_lng}): {e}")
            return None
        from_lat, from_lng = parse_coordinates(location.latitude, location.longitude)

        distance = haversine_km(from_lat, from_lng, target_lat, target_lng)
        minutes = travel_minutes(distance)
        logger.debug(f"ETA {from_user_id} -> ({target_lat}, {target_lng}): {distance:.3f} km, {minutes} min")
        return minutes
