from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel

MIN_MODEL_YEAR = 1900


def check_model_year(value: Optional[int]) -> Optional[int]:
    if value is None:
        return value
    max_year = datetime.now().year + 1
    if value < MIN_MODEL_YEAR or value > max_year:
        raise ValueError(f"Year must be between {MIN_MODEL_YEAR} and {max_year}")
    return value


class MachineModelBase(EmptyStringModel):
    name: str = Field(..., max_length=100)
    manufacturer: str = Field(..., max_length=100)
    brand: str = Field(..., max_length=100)
    year: int
    properties: Optional[Dict[str, Any]] = None

    @field_validator("year")
    @classmethod
    def validate_year(cls, v):
        return check_model_year(v)


class MachineModelCreate(MachineModelBase):
    pass


class MachineModelUpdate(EmptyStringModel):
    name: Optional[str] = Field(None, max_length=100)
    manufacturer: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = None
    properties: Optional[Dict[str, Any]] = None

    @field_validator("year")
    @classmethod
    def validate_year(cls, v):
        return check_model_year(v)


class MachineModelOut(BaseModel):
    id: UUID
    name: str
    manufacturer: str
    brand: str
    year: int
    properties: Optional[Dict[str, Any]] = None
    machines_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MachineModelRequest(CommonQueryParams):
    manufacturer: Optional[str] = None


class MachineModelListResponse(BaseModel):
    items: List[MachineModelOut]
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int
