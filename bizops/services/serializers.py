"""Conversion of ORM entities into the plain dicts returned by services."""
from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import inspect

from bizops.domain.codec import decode_dimensions, decode_tags

_DECODERS = {
    "tags": decode_tags,
    "dimensions": decode_dimensions,
}


def entity_to_dict(entity: Any, _seen: Optional[frozenset] = None) -> Optional[dict]:
    """
    Column values plus every relationship that was eagerly loaded.

    Encoded text columns (tags, dimensions) are decoded; relationships that
    point back to an object already being serialized are skipped.
    """
    if entity is None:
        return None
    seen = (_seen or frozenset()) | {id(entity)}
    state = inspect(entity)
    data: dict = {}
    for attr in state.mapper.column_attrs:
        value = getattr(entity, attr.key)
        decoder = _DECODERS.get(attr.key)
        data[attr.key] = decoder(value) if decoder else value
    unloaded = state.unloaded
    for rel in state.mapper.relationships:
        if rel.key in unloaded:
            continue
        value = getattr(entity, rel.key)
        if rel.uselist:
            data[rel.key] = [entity_to_dict(child, seen) for child in value if id(child) not in seen]
        elif value is not None and id(value) not in seen:
            data[rel.key] = entity_to_dict(value, seen)
    return data


def entities_to_dicts(entities) -> list[dict]:
    return [entity_to_dict(entity) for entity in entities]
