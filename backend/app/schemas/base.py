"""Schema Base — camelCase wire format shared by every request/response model.

Invariants:
    - JSON uses camelCase keys; snake_case accepted on input (populate_by_name)
    - Response models read ORM objects directly (from_attributes)
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def strip_required(v: str, field: str) -> str:
    """Strip whitespace; reject values that are empty afterwards."""
    v = v.strip()
    if not v:
        raise ValueError(f"{field} cannot be empty or whitespace")
    return v
