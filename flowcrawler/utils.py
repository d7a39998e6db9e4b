# utils.py
import base64
import time
import uuid
from datetime import datetime, timezone
from typing import Any

MISSING = object()


def get_nested_value(obj: Any, path: str) -> Any:
    """Resolve a dotted path like 'inner.items.0.value'; returns MISSING when any segment is absent."""
    current = obj
    for key in path.split('.'):
        if isinstance(current, dict):
            if key not in current:
                return MISSING
            current = current[key]
        elif isinstance(current, (list, tuple)) and key.isdigit():
            index = int(key)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_page_id() -> str:
    return f"page_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def json_default(value: Any) -> Any:
    # bytes come from binary screenshots
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode('ascii')
    return str(value)
