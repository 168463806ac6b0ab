"""Response Serialization — JSON-safe rendering of shaped instance dicts.

Invariants:
    - Related ORM objects render as their column attributes only (no nested relations)
    - Output keys are exactly the keys of the shaped dict
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect as sa_inspect

from workflow_model.db.base import Base


def to_jsonable(value: Any) -> Any:
    if isinstance(value, Base):
        mapper = sa_inspect(value).mapper
        return {attr.key: getattr(value, attr.key) for attr in mapper.column_attrs}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def serialize_instance(shaped: dict) -> dict:
    return jsonable_encoder({k: to_jsonable(v) for k, v in shaped.items()})
