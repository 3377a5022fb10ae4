from datetime import date, datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.maintenance_enum import MaintenanceType, RecurrenceFrequency, Weekday, WEEKDAY_ORDER
from .operations_schemas import OperationOut

START_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def normalize_days(days: Optional[List[Weekday]]) -> List[Weekday]:
    """Unique weekdays in calendar order."""
    if not days:
        return []
    unique = {Weekday(d) for d in days}
    return sorted(unique, key=lambda d: WEEKDAY_ORDER.index(d.value))


class MaintenanceRangeBase(EmptyStringModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    type: MaintenanceType
    operation_ids: List[UUID] = []
    frequency: Optional[RecurrenceFrequency] = None
    start_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=START_TIME_PATTERN)
    days_of_week: Optional[List[Weekday]] = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, v):
        return normalize_days(v)


class MaintenanceRangeCreate(MaintenanceRangeBase):
    pass


class MaintenanceRangeUpdate(EmptyStringModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    type: Optional[MaintenanceType] = None
    operation_ids: Optional[List[UUID]] = None
    frequency: Optional[RecurrenceFrequency] = None
    start_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=START_TIME_PATTERN)
    days_of_week: Optional[List[Weekday]] = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, v):
        return normalize_days(v) if v is not None else v


class MaintenanceRangeOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    type: MaintenanceType
    operation_ids: List[UUID] = []
    operations: List[OperationOut] = []
    frequency: Optional[RecurrenceFrequency] = None
    start_date: Optional[date] = None
    start_time: Optional[str] = None
    days_of_week: Optional[List[Weekday]] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MaintenanceRangeRequest(CommonQueryParams):
    type: Optional[MaintenanceType] = None


class MaintenanceRangeListResponse(BaseModel):
    items: List[MaintenanceRangeOut]
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int
