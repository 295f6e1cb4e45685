import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union


class ParseError(ValueError):
    """A job object payload could not be decoded."""

    def __init__(self, raw: str, reason: str, key: Optional[str] = None):
        self.raw = raw
        self.reason = reason
        self.key = key
        where = f" at {key}" if key else ""
        super().__init__(f"Failed to parse job object{where}: {reason} (raw: {raw!r})")


@dataclass(frozen=True)
class JobDescriptor:
    name: str
    unit_hash: bytes

    @property
    def hash(self) -> str:
        """Lowercase hex form of the unit hash, as used for unit keys."""
        return self.unit_hash.hex()


def _field(data: Dict[str, Any], name: str) -> Any:
    """Look up a field by exact name, falling back to a case-insensitive match."""
    if name in data:
        return data[name]
    folded = name.lower()
    for k, v in data.items():
        if k.lower() == folded:
            return v
    return None


def _is_byte_list(v: Any) -> bool:
    return all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in v)


def _decode_bytes(v: Union[str, List[int]]) -> bytes:
    if isinstance(v, list):
        return bytes(v)
    return base64.b64decode(v, validate=True)


def validate_job_object(data: Any) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Missing or null fields are allowed and decode to empty values.
    UnitHash may be a base64 string or an array of byte values.
    """
    if not isinstance(data, dict):
        return [f"Job object must be a JSON object, got {type(data).__name__}"]

    errors: List[str] = []

    name = _field(data, "Name")
    if name is not None and not isinstance(name, str):
        errors.append("Field 'Name' must be a string")

    unit_hash = _field(data, "UnitHash")
    if unit_hash is None:
        pass
    elif isinstance(unit_hash, list):
        if not _is_byte_list(unit_hash):
            errors.append("Field 'UnitHash' array must hold integers from 0 to 255")
    elif isinstance(unit_hash, str):
        try:
            _decode_bytes(unit_hash)
        except (binascii.Error, ValueError):
            errors.append("Field 'UnitHash' is not valid base64")
    else:
        errors.append("Field 'UnitHash' must be a base64 string or an array of bytes")

    return errors


def parse_job_object(raw: str, key: Optional[str] = None) -> JobDescriptor:
    """
    Decode the JSON payload of a job's `object` entry.

    Raises:
        ParseError: If the payload is not JSON or does not describe a job
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(raw, str(e), key) from e

    errors = validate_job_object(data)
    if errors:
        raise ParseError(raw, "; ".join(errors), key)

    unit_hash = _field(data, "UnitHash")
    return JobDescriptor(
        name=_field(data, "Name") or "",
        unit_hash=_decode_bytes(unit_hash) if unit_hash else b"",
    )
