from typing import Any, List, Optional

from pydantic import BaseModel, Field


class Product(BaseModel):
    """A document of the ``products`` collection."""

    name: str = Field(min_length=1)
    quantity: int = Field(ge=0)
    availability: bool


class WriteSummary(BaseModel):
    acknowledged: bool
    inserted_ids: List[Any]
    # set for single-document inserts only
    inserted_id: Optional[Any] = None


class UpdateSummary(BaseModel):
    acknowledged: bool = True
    matched_count: int = 0
    modified_count: int = 0
