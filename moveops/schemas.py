from typing import Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class OperatorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


# ---------- move executions ----------

class ExecutionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"


class PauseAction(str, Enum):
    PAUSE = "pause"
    RESUME = "resume"


class MoveStart(BaseModel):
    team: list[int] = Field(default_factory=list, description="employee ids")


class MoveStartResponse(BaseModel):
    id: int
    status: ExecutionStatus


class TogglePause(BaseModel):
    action: PauseAction


class ToggleResponse(BaseModel):
    status: ExecutionStatus


class MaterialUsageItem(BaseModel):
    material_id: int = Field(..., alias="materialId")
    quantity: int = Field(..., gt=0)

    model_config = ConfigDict(populate_by_name=True)


class MoveComplete(BaseModel):
    material_usage: list[MaterialUsageItem] = Field(default_factory=list, alias="materialUsage")
    notes: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"materialUsage": [{"materialId": 3, "quantity": 2}], "notes": "done"},
            ]
        },
    )


class TeamUpdate(BaseModel):
    team: list[int] = Field(default_factory=list)


class ExecutionRead(BaseModel):
    id: int
    deal_id: int
    status: ExecutionStatus
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ActiveMoveRead(ExecutionRead):
    title: str
    origin_address: Optional[str] = None
    destination_address: Optional[str] = None
    move_date: Optional[date] = None


class TimeRecordRead(BaseModel):
    id: int
    execution_id: int
    employee_id: int
    employee_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None


class TeamMemberRead(BaseModel):
    id: int  # employee id
    first_name: str
    last_name: str
    role: str
    start_time: datetime
    end_time: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None


class MaterialUsageRead(BaseModel):
    id: int
    execution_id: int
    material_id: int
    material_name: str
    unit: str
    quantity: int
    created_at: datetime


# ---------- collaborators ----------

class EmployeeRole(str, Enum):
    mover = "mover"
    driver = "driver"
    team_lead = "team_lead"
    admin = "admin"


class EmployeeStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class EmployeeCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    role: EmployeeRole = EmployeeRole.mover


class EmployeeUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[EmployeeRole] = None
    status: Optional[EmployeeStatus] = None


class EmployeeRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: EmployeeRole
    status: EmployeeStatus
    updated_at: datetime


class DealCreate(BaseModel):
    title: str = Field(..., min_length=1)
    pipedrive_id: Optional[int] = None
    origin_address: Optional[str] = None
    destination_address: Optional[str] = None
    move_date: Optional[date] = None


class DealRead(BaseModel):
    id: int
    pipedrive_id: Optional[int] = None
    title: str
    origin_address: Optional[str] = None
    destination_address: Optional[str] = None
    move_date: Optional[date] = None


class StockAction(str, Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"


class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1)
    unit: str = "pcs"
    current_stock: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)


class MaterialRead(BaseModel):
    id: int
    name: str
    unit: str
    current_stock: int
    min_stock: int
    updated_at: datetime


class MaterialStockUpdate(BaseModel):
    action: StockAction = Field(..., description="IN/OUT/ADJUST")
    delta: int = Field(..., ge=0, le=100000, description="IN/OUT = amount (>0), ADJUST = target stock (>=0)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"action": "IN", "delta": 50},
                {"action": "OUT", "delta": 3},
                {"action": "ADJUST", "delta": 0},
            ]
        }
    }


class MaterialStatistics(BaseModel):
    material_id: int
    name: str
    usage_count: int
    total_quantity: int
