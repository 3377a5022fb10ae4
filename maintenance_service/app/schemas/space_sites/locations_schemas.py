# app/schemas/space_sites/locations_schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel


class LocationBase(EmptyStringModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=50)
    internal_code: Optional[str] = Field(None, max_length=64)
    parent_id: Optional[UUID] = None


class LocationCreate(LocationBase):
    pass


class LocationUpdate(EmptyStringModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=50)
    internal_code: Optional[str] = Field(None, max_length=64)
    parent_id: Optional[UUID] = None


class LocationOut(BaseModel):
    id: UUID
    internal_code: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    parent_id: Optional[UUID] = None
    path: str
    level: int
    is_leaf: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LocationMachineOut(BaseModel):
    id: UUID
    location: str
    description: Optional[str] = None
    model_name: Optional[str] = None

    model_config = {"from_attributes": True}


class LocationNode(LocationOut):
    children_count: int = 0
    machines_count: int = 0
    has_children: bool = False
    machines: List[LocationMachineOut] = []
    children: List["LocationNode"] = []


class LocationRequest(CommonQueryParams):
    parent_id: Optional[UUID] = None
    root_only: Optional[bool] = False
    include_children: Optional[bool] = False
    flat: Optional[bool] = False


class LocationTreeRequest(EmptyStringModel):
    offset: Optional[int] = 0
    limit: Optional[int] = 50
    search: Optional[str] = None


class LocationTreeResponse(BaseModel):
    locations: List[LocationNode]
    total_items: int
    has_more: bool
    offset: int
    limit: int


class LocationListResponse(BaseModel):
    items: List[LocationNode]
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int


LocationNode.model_rebuild()
