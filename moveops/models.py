from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    password_hash: str


class Employee(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str = Field(default="mover")                 # mover / driver / team_lead / admin
    status: str = Field(default="active", index=True)  # active / inactive
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Deal(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    pipedrive_id: Optional[int] = Field(default=None, index=True, unique=True)
    title: str
    origin_address: Optional[str] = None
    destination_address: Optional[str] = None
    move_date: Optional[date] = None
    created_at: datetime = Field(default_factory=utcnow)


class Material(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    unit: str = Field(default="pcs")
    current_stock: int = Field(default=0)  # may go negative after a move consumes more than stocked
    min_stock: int = Field(default=0)
    updated_at: datetime = Field(default_factory=utcnow)


class MoveExecution(SQLModel, table=True):
    __tablename__ = "move_executions"

    id: Optional[int] = Field(default=None, primary_key=True)
    deal_id: int = Field(foreign_key="deal.id", index=True)

    status: str = Field(default="pending", index=True)  # pending / in_progress / paused / completed
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TimeRecord(SQLModel, table=True):
    __tablename__ = "time_records"

    id: Optional[int] = Field(default=None, primary_key=True)
    execution_id: int = Field(foreign_key="move_executions.id", index=True)
    employee_id: int = Field(foreign_key="employee.id", index=True)

    start_time: datetime
    end_time: Optional[datetime] = None      # NULL = still working
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)


class MoveMaterialUsage(SQLModel, table=True):
    __tablename__ = "move_material_usage"

    id: Optional[int] = Field(default=None, primary_key=True)
    execution_id: int = Field(foreign_key="move_executions.id", index=True)
    material_id: int = Field(foreign_key="material.id", index=True)
    quantity: int

    created_at: datetime = Field(default_factory=utcnow)
