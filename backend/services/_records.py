# backend/services/_records.py
from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from utils.errors import ResultShapeError

T = TypeVar("T", bound=BaseModel)


def to_record(model: Type[T], row: Mapping[str, Any], routine: str) -> T:
    try:
        return model.model_validate(dict(row))
    except ValidationError as e:
        raise ResultShapeError(f"Unexpected result shape from {routine}: {e.error_count()} invalid field(s)") from e
