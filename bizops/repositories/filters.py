"""
Translate ``where`` mappings into SQLAlchemy criteria.

    {"status": {"not": "COMPLETED"}, "due_date": {"lt": now}}
    {"OR": [{"name": {"icontains": "acme"}}, {"contacts": {"some": {"role": {"icontains": "cto"}}}}]}

A bare value means equality (None means IS NULL).
"""
from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import and_, inspect, not_, or_
from sqlalchemy.sql.elements import ColumnElement


def _column_op(column, op: str, value: Any) -> ColumnElement:
    if op == "eq":
        return column.is_(None) if value is None else column == value
    if op == "not":
        return column.is_not(None) if value is None else or_(column != value, column.is_(None))
    if op == "lt":
        return column < value
    if op == "lte":
        return column <= value
    if op == "gt":
        return column > value
    if op == "gte":
        return column >= value
    if op == "in":
        return column.in_(list(value))
    if op == "not_in":
        return or_(column.not_in(list(value)), column.is_(None))
    if op == "contains":
        return column.contains(str(value), autoescape=True)
    if op == "icontains":
        return column.icontains(str(value), autoescape=True)
    raise ValueError(f"Unsupported filter operator: {op}")


def build_criteria(model, where: Mapping[str, Any] | None) -> list[ColumnElement]:
    """Return a list of criteria to be AND-ed for ``model``."""
    if not where:
        return []
    mapper = inspect(model)
    criteria: list[ColumnElement] = []
    for key, condition in where.items():
        if key == "OR":
            branches = [and_(*build_criteria(model, sub)) for sub in condition]
            criteria.append(or_(*branches))
        elif key == "AND":
            for sub in condition:
                criteria.extend(build_criteria(model, sub))
        elif key == "NOT":
            criteria.append(not_(and_(*build_criteria(model, condition))))
        elif key in mapper.relationships:
            criteria.append(_relationship_criteria(model, key, condition))
        elif key in mapper.columns:
            column = getattr(model, key)
            if isinstance(condition, Mapping):
                for op, value in condition.items():
                    criteria.append(_column_op(column, op, value))
            else:
                criteria.append(_column_op(column, "eq", condition))
        else:
            raise ValueError(f"Unknown field '{key}' for {model.__name__}")
    return criteria


def _relationship_criteria(model, key: str, condition: Mapping[str, Any]) -> ColumnElement:
    rel = inspect(model).relationships[key]
    attr = getattr(model, key)
    target = rel.mapper.class_
    if not isinstance(condition, Mapping) or not condition:
        raise ValueError(f"Relationship filter on '{key}' needs 'some' or 'none'")
    clauses = []
    for op, sub in condition.items():
        inner = and_(*build_criteria(target, sub)) if sub else None
        if rel.uselist:
            exists = attr.any(inner) if inner is not None else attr.any()
        else:
            exists = attr.has(inner) if inner is not None else attr.has()
        if op == "some":
            clauses.append(exists)
        elif op == "none":
            clauses.append(not_(exists))
        else:
            raise ValueError(f"Unsupported relationship operator: {op}")
    return and_(*clauses)
