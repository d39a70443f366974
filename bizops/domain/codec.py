"""
Encoding of structured values kept in scalar text columns.

Tags are stored as a JSON array, shipment dimensions as a JSON object.
Decoders accept either the stored text or an already-structured value, and
fall back to a default instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dimensions:
    length: float
    width: float
    height: float

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height

    def as_dict(self) -> dict:
        return {"length": self.length, "width": self.width, "height": self.height}


# -------------------------- tags --------------------------
def encode_tags(tags: Optional[Iterable[str] | str]) -> Optional[str]:
    if tags is None:
        return None
    if isinstance(tags, str):
        tags = [tags]
    return json.dumps([str(tag) for tag in tags], ensure_ascii=False)


def decode_tags(value: Any, default: Optional[list[str]] = None) -> list[str]:
    fallback = list(default) if default is not None else []
    if value is None or value == "":
        return fallback
    if isinstance(value, (list, tuple)):
        return [str(tag) for tag in value]
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError as exc:
            logger.warning("Could not decode tags %r: %s", value, exc)
            return fallback
        if isinstance(parsed, list):
            return [str(tag) for tag in parsed]
        logger.warning("Tags value is not a JSON array: %r", value)
        return fallback
    logger.warning("Unsupported tags value of type %s", type(value).__name__)
    return fallback


# -------------------------- dimensions --------------------------
def _dimensions_from_mapping(data: Mapping[str, Any]) -> Dimensions:
    return Dimensions(
        length=float(data["length"]),
        width=float(data["width"]),
        height=float(data["height"]),
    )


def encode_dimensions(dimensions: Dimensions | Mapping[str, Any] | None) -> Optional[str]:
    if dimensions is None:
        return None
    if not isinstance(dimensions, Dimensions):
        dimensions = _dimensions_from_mapping(dimensions)
    return json.dumps(dimensions.as_dict())


def decode_dimensions(value: Any, default: Optional[Dimensions] = None) -> Optional[Dimensions]:
    if value is None or value == "":
        return default
    if isinstance(value, Dimensions):
        return value
    try:
        data = json.loads(value) if isinstance(value, str) else value
        if not isinstance(data, Mapping):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        return _dimensions_from_mapping(data)
    except (ValueError, TypeError, KeyError) as exc:
        logger.warning("Could not decode dimensions %r: %s", value, exc)
        return default
