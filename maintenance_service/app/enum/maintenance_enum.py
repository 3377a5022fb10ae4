from enum import Enum


class WorkOrderStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


class MaintenanceType(str, Enum):
    preventive = "preventive"
    corrective = "corrective"


class OperationType(str, Enum):
    text = "text"
    date = "date"
    time = "time"
    datetime = "datetime"
    boolean = "boolean"
    number = "number"


class RecurrenceFrequency(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"


class Weekday(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"


class OperationSource(str, Enum):
    maintenance_range = "maintenance_range"
    machine = "machine"
    additional = "additional"


# forward-only ordering of work order states
WORK_ORDER_STATUS_RANK = {
    WorkOrderStatus.pending: 0,
    WorkOrderStatus.in_progress: 1,
    WorkOrderStatus.completed: 2,
}

WEEKDAY_ORDER = [day.value for day in Weekday]
