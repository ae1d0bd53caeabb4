"""
Pydantic models for the SaleSys orders-v2 API.
"""

from datetime import date
from typing import List
from pydantic import BaseModel, Field


class OrderField(BaseModel):
    """One form field value, addressed by the SaleSys field id."""
    model_config = {"populate_by_name": True}

    field_id: str = Field(alias="fieldId")
    value: str


class OrderRequest(BaseModel):
    """
    Request body for POST /api/orders/orders-v2.

    Serialise with model_dump(by_alias=True, mode="json") to get the
    camelCase keys and ISO date the API expects.
    """
    model_config = {"populate_by_name": True}

    user_id: str = Field(alias="userId")
    project_id: str = Field(alias="projectId")
    tag_ids: List[str] = Field(default_factory=list, alias="tagIds")
    order_date: date = Field(alias="date")
    fields: List[OrderField] = Field(default_factory=list)
