from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.maintenance_enum import MaintenanceType
from .machine_models_schemas import MachineModelOut
from .maintenance_ranges_schemas import MaintenanceRangeOut
from .operations_schemas import OperationOut


class MachineBase(EmptyStringModel):
    model_id: UUID
    location_id: Optional[UUID] = None
    location: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    maintenance_range_ids: List[UUID] = []
    operation_ids: List[UUID] = []
    properties: Optional[Dict[str, Any]] = None


class MachineCreate(MachineBase):
    pass


class MachineUpdate(EmptyStringModel):
    model_id: Optional[UUID] = None
    location_id: Optional[UUID] = None
    location: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    maintenance_range_ids: Optional[List[UUID]] = None
    operation_ids: Optional[List[UUID]] = None
    properties: Optional[Dict[str, Any]] = None


class MachineLocationOut(BaseModel):
    id: UUID
    name: str
    path: str

    model_config = {"from_attributes": True}


class MachineOut(BaseModel):
    id: UUID
    model_id: UUID
    model: Optional[MachineModelOut] = None
    location_id: Optional[UUID] = None
    location: str
    location_ref: Optional[MachineLocationOut] = None
    description: Optional[str] = None
    maintenance_range_ids: List[UUID] = []
    maintenance_ranges: List[MaintenanceRangeOut] = []
    operation_ids: List[UUID] = []
    operations: List[OperationOut] = []
    properties: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MachineRequest(CommonQueryParams):
    location_id: Optional[UUID] = None
    model_id: Optional[UUID] = None


class MachineOperationsRequest(BaseModel):
    type: MaintenanceType = MaintenanceType.preventive


class MachineListResponse(BaseModel):
    items: List[MachineOut]
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int
