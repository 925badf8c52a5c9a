"""
Runtime configuration for the Code Red API.

Everything comes from environment variables and is read once at startup
via get_settings(). DATABASE_URL decides the storage backend:
    unset  -> in-memory storage (demo / tests)
    set    -> SQLAlchemy storage against that URL
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# Hospital sites used as ETA targets when the caller does not supply one.
# Override or extend with CODERED_SITE_COORDINATES='{"Ward 12": [51.5071, -0.1266]}'
DEFAULT_SITES: Dict[str, Tuple[float, float]] = {
    "Main Lab": (51.5074, -0.1278),
    "Satellite Lab": (51.5085, -0.1290),
    "ICU": (51.5080, -0.1285),
    "Emergency Department": (51.5070, -0.1275),
    "Theatre Complex": (51.5077, -0.1283),
    "Ward 10": (51.5072, -0.1270),
}


@dataclass
class Settings:
    database_url: Optional[str] = None
    db_echo: bool = False
    sites: Dict[str, Tuple[float, float]] = field(default_factory=lambda: dict(DEFAULT_SITES))
    default_lab_site: str = "Main Lab"
    default_clinical_site: str = "ICU"
    host: str = "0.0.0.0"
    port: int = 8001
    log_level: str = "INFO"

    @property
    def storage_backend(self) -> str:
        return "sql" if self.database_url else "memory"


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ('true', '1', 'yes')


def _parse_sites(raw: Optional[str]) -> Dict[str, Tuple[float, float]]:
    """Merge a JSON object of site -> [lat, lng] over the default sites"""
    sites = dict(DEFAULT_SITES)
    if not raw:
        return sites

    try:
        overrides = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"CODERED_SITE_COORDINATES is not valid JSON: {e}") from e

    if not isinstance(overrides, dict):
        raise ValueError("CODERED_SITE_COORDINATES must be a JSON object")

    for name, coords in overrides.items():
        if not isinstance(coords, (list, tuple)) or len(coords) != 2:
            raise ValueError(f"Site '{name}' must be [latitude, longitude]")
        sites[name] = (float(coords[0]), float(coords[1]))

    return sites


def load_settings(environ=None) -> Settings:
    """Build Settings from an environment mapping (defaults to os.environ)"""
    env = os.environ if environ is None else environ

    settings = Settings(
        database_url=env.get("DATABASE_URL") or None,
        db_echo=_parse_bool(env.get("CODERED_DB_ECHO")),
        sites=_parse_sites(env.get("CODERED_SITE_COORDINATES")),
        default_lab_site=env.get("CODERED_DEFAULT_LAB_SITE", "Main Lab"),
        default_clinical_site=env.get("CODERED_DEFAULT_CLINICAL_SITE", "ICU"),
        host=env.get("CODERED_HOST", "0.0.0.0"),
        port=int(env.get("CODERED_PORT", "8001")),
        log_level=env.get("CODERED_LOG_LEVEL", "INFO").upper(),
    )

    for site in (settings.default_lab_site, settings.default_clinical_site):
        if site not in settings.sites:
            raise ValueError(f"Default site '{site}' has no coordinates")

    return settings


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use"""
    global _settings
    if _settings is None:
        _settings = load_settings()
        logger.debug(f"Settings loaded (storage backend: {_settings.storage_backend})")
    return _settings
