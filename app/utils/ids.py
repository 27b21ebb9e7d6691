"""
Record identifiers.

Records are addressed by opaque 32-character hex strings.
"""
import re
import uuid

_RECORD_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def generate_record_id() -> str:
    """Generate an opaque record identifier (32 hex chars)."""
    return uuid.uuid4().hex


def is_valid_record_id(value: str) -> bool:
    """Check that a path parameter looks like a record identifier."""
    return bool(value) and _RECORD_ID_RE.match(value) is not None
