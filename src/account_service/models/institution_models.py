"""
# Institution Models

An institution (school, clinic, research center) is the organization users are affiliated
with. Users reference an institution by id; the institution is joined in at read time.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Institution(BaseModel):
    """
    Domain model for an institution.

    All fields are optional so that the same model can carry partial updates and
    reduced projections. Only fields that were actually set are serialized.
    """

    id: Optional[str] = Field(None, description="Institution id (24-char hex)")
    type: Optional[str] = Field(None, description="Institution type, e.g. 'Institute of Scientific Research'")
    name: Optional[str] = Field(None, description="Institution name")
    address: Optional[str] = Field(None, description="Postal address")
    latitude: Optional[float] = Field(None, description="Geographic latitude")
    longitude: Optional[float] = Field(None, description="Geographic longitude")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp set by the store")

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key in ("id", "type", "name", "address", "latitude", "longitude"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result
