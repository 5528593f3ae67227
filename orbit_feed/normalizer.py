"""
OMM Record Normalizer

Turns one raw CelesTrak GP record into a validated OrbitRecord, or an
explicit Discarded outcome. The identifier check runs before anything else
because the NORAD id is the join key between element sets and positions.
"""

import math
from typing import Any, Callable, Mapping, NamedTuple, Optional, Union

from orbit_feed.models import OrbitRecord

PAYLOAD = "PAYLOAD"
DEBRIS = "DEBRIS"
ROCKET_BODY = "ROCKET BODY"

OBJECT_TYPE_SYNONYMS = {
    "PAY": PAYLOAD,
    "PAYLOAD": PAYLOAD,
    "DEB": DEBRIS,
    "DEBRIS": DEBRIS,
    "R/B": ROCKET_BODY,
    "RB": ROCKET_BODY,
    "ROCKET BODY": ROCKET_BODY,
}


class Discarded(NamedTuple):
    """A raw record rejected by the normalizer"""
    reason: str
    norad_id: Optional[int] = None


INVALID_RECORD = "record is not an object"
INVALID_IDENTIFIER = "invalid identifier"
BUILD_FAILED = "propagation setup failed"


def to_finite_number(value: Any) -> Optional[float]:
    """Number or numeric string to a finite float, else None"""
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    return number if math.isfinite(number) else None


def to_clean_string(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None

    trimmed = value.strip()
    return trimmed or None


def normalize_object_type(value: Optional[str]) -> Optional[str]:
    """Map a raw OBJECT_TYPE onto its canonical tag (case-insensitive)"""
    if not value or not value.strip():
        return None

    upper_value = value.strip().upper()
    return OBJECT_TYPE_SYNONYMS.get(upper_value, upper_value)


def infer_object_type_from_name(object_name: str) -> str:
    upper_name = object_name.upper()

    if " DEB" in upper_name or "DEBRIS" in upper_name:
        return DEBRIS

    if " R/B" in upper_name or "ROCKET BODY" in upper_name:
        return ROCKET_BODY

    return PAYLOAD


def normalize_record(
    raw: Any, build: Callable[[Mapping[str, Any]], Any]
) -> Union[OrbitRecord, Discarded]:
    """
    Normalize one raw OMM record.

    Args:
        raw: Decoded JSON object from the GP feed
        build: Propagation collaborator turning the raw record into a
            propagation-ready representation; any exception discards the record

    Returns:
        OrbitRecord, or Discarded with the rejection reason
    """
    if not isinstance(raw, Mapping):
        return Discarded(INVALID_RECORD)

    identifier = to_finite_number(raw.get("NORAD_CAT_ID"))
    if identifier is None or not identifier.is_integer():
        return Discarded(INVALID_IDENTIFIER)
    norad_id = int(identifier)

    object_name = to_clean_string(raw.get("OBJECT_NAME")) or f"NORAD-{norad_id}"
    object_type = (
        normalize_object_type(to_clean_string(raw.get("OBJECT_TYPE")))
        or infer_object_type_from_name(object_name)
    )

    try:
        satrec = build(raw)
    except Exception:
        return Discarded(BUILD_FAILED, norad_id)

    return OrbitRecord(
        norad_id=norad_id,
        object_name=object_name,
        object_type=object_type,
        country_code=to_clean_string(raw.get("COUNTRY_CODE")),
        inclination=to_finite_number(raw.get("INCLINATION")),
        launch_date=to_clean_string(raw.get("LAUNCH_DATE")),
        satrec=satrec,
    )
