# app/router/maintenance_assets/work_orders_router.py
from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_maintenance_db as get_db
from shared.core.schemas import BulkDeleteRequest, BulkDeleteResponse, Lookup, MessageResponse, UserToken
from ...crud.maintenance_assets import work_orders_crud as crud
from ...schemas.maintenance_assets.work_orders_schemas import (
    ClientSignatureIn, FilledOperationsSave, ImagesUpload, LaborStart, MaintenanceSave,
    MaintenanceSummaryOut, MaterialIn, MaterialUpdate, OperatorSignatureIn, WorkOrderCreate,
    WorkOrderListResponse, WorkOrderOut, WorkOrderOverview, WorkOrderRequest, WorkOrderUpdate)

router = APIRouter(
    prefix="/api/work-orders",
    tags=["work-orders"],
    dependencies=[Depends(validate_current_token)]
)


# ---------------- Listing / lookups ----------------

@router.get("", response_model=WorkOrderListResponse)
def get_work_orders(
        params: WorkOrderRequest = Depends(),
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_work_orders(db, current_user.company_id, params)


@router.get("/overview", response_model=WorkOrderOverview)
def get_work_orders_overview(
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_work_orders_overview(db, current_user.company_id)


@router.get("/status-lookup", response_model=List[Lookup])
def work_order_status_lookup():
    return crud.work_order_status_lookup()


@router.get("/type-lookup", response_model=List[Lookup])
def work_order_type_lookup():
    return crud.work_order_type_lookup()


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_work_orders(
        request: BulkDeleteRequest,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.bulk_delete_work_orders(db, current_user.company_id, request.ids)


# ---------------- CRUD ----------------

@router.post("", response_model=WorkOrderOut, status_code=status.HTTP_201_CREATED)
def create_work_order(
        work_order: WorkOrderCreate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.create_work_order(db, current_user.company_id, work_order)


@router.get("/{work_order_id}", response_model=WorkOrderOut)
def get_work_order(
        work_order_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_work_order(db, current_user.company_id, work_order_id)


@router.put("/{work_order_id}", response_model=WorkOrderOut)
def update_work_order(
        work_order_id: UUID,
        work_order: WorkOrderUpdate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.update_work_order(db, current_user.company_id, work_order_id, work_order)


@router.delete("/{work_order_id}", response_model=MessageResponse)
def delete_work_order(
        work_order_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.delete_work_order(db, current_user.company_id, work_order_id)


# ---------------- Maintenance work ----------------

@router.get("/{work_order_id}/summary", response_model=MaintenanceSummaryOut)
def get_maintenance_summary(
        work_order_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.get_maintenance_summary(db, current_user.company_id, work_order_id)


@router.put("/{work_order_id}/maintenance", response_model=WorkOrderOut)
def save_maintenance(
        work_order_id: UUID,
        data: MaintenanceSave,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.save_maintenance(db, current_user.company_id, work_order_id, data, current_user.name)


@router.post("/{work_order_id}/finish", response_model=WorkOrderOut)
def finish_work_order(
        work_order_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.finish_work_order(db, current_user.company_id, work_order_id)


@router.put("/{work_order_id}/machines/{machine_id}/filled-operations", response_model=WorkOrderOut)
def fill_machine_operations(
        work_order_id: UUID,
        machine_id: UUID,
        data: FilledOperationsSave,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.fill_machine_operations(
        db, current_user.company_id, work_order_id, machine_id, data.filled_operations, current_user.name)


@router.post("/{work_order_id}/labor", response_model=WorkOrderOut)
def start_labor(
        work_order_id: UUID,
        data: LaborStart,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.start_labor(db, current_user.company_id, work_order_id, data.operator_name)


@router.post("/{work_order_id}/labor/{index}/stop", response_model=WorkOrderOut)
def stop_labor(
        work_order_id: UUID,
        index: int,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.stop_labor(db, current_user.company_id, work_order_id, index)


@router.post("/{work_order_id}/materials", response_model=WorkOrderOut)
def add_material(
        work_order_id: UUID,
        material: MaterialIn,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.add_material(db, current_user.company_id, work_order_id, material)


@router.put("/{work_order_id}/materials/{index}", response_model=WorkOrderOut)
def update_material(
        work_order_id: UUID,
        index: int,
        material: MaterialUpdate,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.update_material(db, current_user.company_id, work_order_id, index, material)


@router.delete("/{work_order_id}/materials/{index}", response_model=WorkOrderOut)
def remove_material(
        work_order_id: UUID,
        index: int,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.remove_material(db, current_user.company_id, work_order_id, index)


@router.post("/{work_order_id}/images", response_model=WorkOrderOut)
def add_images(
        work_order_id: UUID,
        data: ImagesUpload,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.add_images(db, current_user.company_id, work_order_id, data.images, current_user.name)


# ---------------- Signatures ----------------

@router.put("/{work_order_id}/operator-signature", response_model=WorkOrderOut)
def set_operator_signature(
        work_order_id: UUID,
        data: OperatorSignatureIn,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.set_operator_signature(db, current_user.company_id, work_order_id, data)


@router.put("/{work_order_id}/client-signature", response_model=WorkOrderOut)
def set_client_signature(
        work_order_id: UUID,
        data: ClientSignatureIn,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.set_client_signature(db, current_user.company_id, work_order_id, data)


@router.delete("/{work_order_id}/client-signature", response_model=WorkOrderOut)
def remove_client_signature(
        work_order_id: UUID,
        db: Session = Depends(get_db),
        current_user: UserToken = Depends(validate_current_token)):
    return crud.remove_client_signature(db, current_user.company_id, work_order_id)
