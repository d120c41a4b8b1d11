from datetime import datetime, timezone


def utcnow() -> datetime:
    """Horodatage UTC naïf, stocké dans des colonnes `timestamp without time zone`."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
