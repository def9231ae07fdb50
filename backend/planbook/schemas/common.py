from typing import Iterable

from pydantic import BaseModel


def reject_nulls(model: BaseModel, fields: Iterable[str]) -> None:
    """Partial updates may omit a required column but never set it to null."""
    nulled = [f for f in fields if f in model.model_fields_set and getattr(model, f) is None]
    if nulled:
        raise ValueError(f"{', '.join(nulled)} cannot be null")
