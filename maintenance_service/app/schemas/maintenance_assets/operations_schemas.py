from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.maintenance_enum import OperationType


class OperationBase(EmptyStringModel):
    name: str = Field(..., max_length=100)
    description: str = Field(..., max_length=500)
    type: OperationType
    order: Optional[int] = None
    internal_code: Optional[str] = Field(None, max_length=64)


class OperationCreate(OperationBase):
    pass


class OperationUpdate(EmptyStringModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    type: Optional[OperationType] = None
    order: Optional[int] = None
    internal_code: Optional[str] = Field(None, max_length=64)


class OperationOut(BaseModel):
    id: UUID
    internal_code: str
    name: str
    description: str
    type: OperationType
    order: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OperationRequest(CommonQueryParams):
    type: Optional[OperationType] = None


class OperationListResponse(BaseModel):
    items: List[OperationOut]
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int


class AggregatedOperationOut(BaseModel):
    operation_id: UUID
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    order: Optional[int] = None
    source: str
    maintenance_range_id: Optional[UUID] = None
