import base64
from datetime import datetime, timezone
from typing import Any, Optional

from google.cloud.firestore import DocumentReference, GeoPoint


def to_jsonable(obj: Any) -> Any:
    """Recursively convert Firestore values (timestamps, references, geo points) to JSON-serializable types."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, DocumentReference):
        return obj.path
    if isinstance(obj, GeoPoint):
        return {"latitude": obj.latitude, "longitude": obj.longitude}
    if isinstance(obj, bytes):
        return base64.b64encode(obj).decode("ascii")
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(i) for i in obj]
    return obj


def scalar_text(value: Any) -> Optional[str]:
    """Render a scalar field value the way the console displays it; None for non-scalars."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def ms_to_iso(ms: Optional[int]) -> Optional[str]:
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()
