"""Service layer: event registry, pack tracker, location and ETA."""
