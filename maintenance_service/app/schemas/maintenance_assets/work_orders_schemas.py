# app/schemas/maintenance_assets/work_orders_schemas.py
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.maintenance_enum import MaintenanceType, WorkOrderStatus


# ---------------- Embedded documents ----------------

class FilledOperationIn(EmptyStringModel):
    operation_id: UUID
    value: Any = None
    description: Optional[str] = None


class FilledOperationOut(BaseModel):
    operation_id: UUID
    machine_id: Optional[UUID] = None
    value: Any = None
    description: Optional[str] = None
    filled_at: Optional[datetime] = None
    filled_by: Optional[str] = None


class ImageIn(EmptyStringModel):
    url: str
    filename: str
    machine_id: Optional[UUID] = None


class ImageOut(BaseModel):
    url: str
    filename: str
    uploaded_at: Optional[datetime] = None
    uploaded_by: Optional[str] = None


class LaborStart(EmptyStringModel):
    operator_name: str = Field(..., min_length=1, max_length=200)


class LaborOut(BaseModel):
    operator_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    is_active: bool
    hours: float = 0


class MaterialIn(EmptyStringModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: float = Field(..., ge=0)
    unit_type: Optional[str] = None
    unit: Optional[str] = None


class MaterialUpdate(EmptyStringModel):
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    quantity: Optional[float] = Field(None, ge=0)
    unit_type: Optional[str] = None
    unit: Optional[str] = None


class MaterialOut(BaseModel):
    description: str
    unit_type: str
    unit: str
    quantity: float


class OperatorSignatureIn(EmptyStringModel):
    operator_name: str
    operator_id: Optional[str] = None
    signature: str


class ClientSignatureIn(EmptyStringModel):
    client_name: str
    client_id: Optional[str] = None
    signature: str


class SignatureOut(BaseModel):
    operator_name: Optional[str] = None
    operator_id: Optional[str] = None
    client_name: Optional[str] = None
    client_id: Optional[str] = None
    signature: str
    signed_at: Optional[datetime] = None


class WorkOrderMachineIn(EmptyStringModel):
    machine_id: UUID
    # picked by hand on top of the machine's own operations
    operation_ids: List[UUID] = []
    maintenance_description: Optional[str] = None


class WorkOrderMachineOperationOut(BaseModel):
    operation_id: UUID
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    order: Optional[int] = None


class WorkOrderMachineOut(BaseModel):
    machine_id: UUID
    location: Optional[str] = None
    model_name: Optional[str] = None
    maintenance_range_ids: List[UUID] = []
    operation_ids: List[UUID] = []
    operations: List[WorkOrderMachineOperationOut] = []
    filled_operations: List[FilledOperationOut] = []
    images: List[ImageOut] = []
    maintenance_description: Optional[str] = None


# ---------------- Work orders ----------------

class WorkOrderBase(EmptyStringModel):
    custom_code: Optional[str] = Field(None, max_length=64)
    location_id: Optional[UUID] = None
    work_order_location_id: Optional[UUID] = None
    type: MaintenanceType
    description: str = Field(..., min_length=1)
    maintenance_description: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    assigned_to: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None
    machines: List[WorkOrderMachineIn] = []
    properties: Optional[Dict[str, Any]] = None


class WorkOrderCreate(WorkOrderBase):
    status: Optional[WorkOrderStatus] = WorkOrderStatus.pending


class WorkOrderUpdate(EmptyStringModel):
    custom_code: Optional[str] = Field(None, max_length=64)
    location_id: Optional[UUID] = None
    work_order_location_id: Optional[UUID] = None
    type: Optional[MaintenanceType] = None
    status: Optional[WorkOrderStatus] = None
    description: Optional[str] = Field(None, min_length=1)
    maintenance_description: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    assigned_to: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None
    machines: Optional[List[WorkOrderMachineIn]] = None
    properties: Optional[Dict[str, Any]] = None


class MachineMaintenanceIn(EmptyStringModel):
    machine_id: UUID
    filled_operations: List[FilledOperationIn] = []
    maintenance_description: Optional[str] = None


class MaintenanceSave(EmptyStringModel):
    maintenance_description: Optional[str] = None
    machines: List[MachineMaintenanceIn] = []
    materials: Optional[List[MaterialIn]] = None
    images: List[ImageIn] = []
    operator_signature: Optional[OperatorSignatureIn] = None


class FilledOperationsSave(EmptyStringModel):
    filled_operations: List[FilledOperationIn]


class ImagesUpload(EmptyStringModel):
    images: List[ImageIn] = Field(..., min_length=1)


class WorkOrderOut(BaseModel):
    id: UUID
    custom_code: Optional[str] = None
    location_id: Optional[UUID] = None
    location_path: Optional[str] = None
    work_order_location_id: Optional[UUID] = None
    type: MaintenanceType
    status: WorkOrderStatus
    description: str
    maintenance_description: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    machines: List[WorkOrderMachineOut] = []
    filled_operations: List[FilledOperationOut] = []
    labor: List[LaborOut] = []
    materials: List[MaterialOut] = []
    images: List[ImageOut] = []
    operator_signature: Optional[SignatureOut] = None
    client_signature: Optional[SignatureOut] = None
    properties: Optional[Dict[str, Any]] = None
    has_maintenance_data: bool = False
    can_delete: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WorkOrderRequest(CommonQueryParams):
    status: Optional[WorkOrderStatus] = None
    type: Optional[MaintenanceType] = None
    location_id: Optional[UUID] = None


class WorkOrderListResponse(BaseModel):
    items: List[WorkOrderOut]
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int


class WorkOrderOverview(BaseModel):
    total_work_orders: int
    pending: int
    in_progress: int
    completed: int
    preventive: int
    corrective: int


class MaintenanceSummaryOut(BaseModel):
    machines_count: int
    operations_count: int
    filled_operations_count: int
    labor_count: int
    active_labor_count: int
    materials_count: int
    images_count: int
    total_labor_hours: float
    all_operations_completed: bool
    has_maintenance_data: bool
