import logging
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol, Sequence

from sqlmodel import Session, select

from moveops.models import (
    Deal,
    Employee,
    Material,
    MoveExecution,
    MoveMaterialUsage,
    TimeRecord,
)

logger = logging.getLogger(__name__)


class ExecutionRepository(Protocol):
    """Storage the move execution service talks to."""

    def transaction(self) -> AbstractContextManager["ExecutionRepository"]: ...

    def get_deal(self, deal_id: int) -> Deal | None: ...

    def get_employee(self, employee_id: int) -> Employee | None: ...

    def get_material(self, material_id: int) -> Material | None: ...

    def get_execution(self, execution_id: int) -> MoveExecution | None: ...

    def add_execution(self, execution: MoveExecution) -> MoveExecution: ...

    def add_time_record(self, record: TimeRecord) -> TimeRecord: ...

    def delete_time_record(self, record: TimeRecord) -> None: ...

    def add_material_usage(self, usage: MoveMaterialUsage) -> MoveMaterialUsage: ...

    def save(self, obj) -> None: ...

    def open_time_records(self, execution_id: int) -> Sequence[TimeRecord]: ...

    def open_break_records(self, execution_id: int) -> Sequence[TimeRecord]: ...

    def list_active(self, statuses: Sequence[str]) -> Sequence[tuple[MoveExecution, Deal]]: ...

    def list_time_records(self, execution_id: int) -> Sequence[tuple[TimeRecord, Employee]]: ...

    def list_team(self, execution_id: int) -> Sequence[tuple[TimeRecord, Employee]]: ...

    def list_material_usage(self, execution_id: int) -> Sequence[tuple[MoveMaterialUsage, Material]]: ...


class SqlExecutionRepository:
    """ExecutionRepository over a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def transaction(self):
        # commit on normal exit, roll back on every other exit path
        try:
            yield self
            self.session.commit()
        except BaseException as e:
            self.session.rollback()
            logger.warning("transaction rolled back: %s: %s", type(e).__name__, e)
            raise

    # ---------- lookups ----------

    def get_deal(self, deal_id: int) -> Deal | None:
        return self.session.get(Deal, deal_id)

    def get_employee(self, employee_id: int) -> Employee | None:
        return self.session.get(Employee, employee_id)

    def get_material(self, material_id: int) -> Material | None:
        return self.session.get(Material, material_id)

    def get_execution(self, execution_id: int) -> MoveExecution | None:
        return self.session.get(MoveExecution, execution_id)

    # ---------- writes ----------

    def add_execution(self, execution: MoveExecution) -> MoveExecution:
        self.session.add(execution)
        self.session.flush()  # assigns execution.id
        return execution

    def add_time_record(self, record: TimeRecord) -> TimeRecord:
        self.session.add(record)
        self.session.flush()
        return record

    def delete_time_record(self, record: TimeRecord) -> None:
        self.session.delete(record)
        self.session.flush()

    def add_material_usage(self, usage: MoveMaterialUsage) -> MoveMaterialUsage:
        self.session.add(usage)
        self.session.flush()
        return usage

    def save(self, obj) -> None:
        self.session.add(obj)
        self.session.flush()

    # ---------- queries ----------

    def open_time_records(self, execution_id: int) -> list[TimeRecord]:
        stmt = select(TimeRecord).where(
            TimeRecord.execution_id == execution_id,
            TimeRecord.end_time.is_(None),
        )
        return list(self.session.exec(stmt).all())

    def open_break_records(self, execution_id: int) -> list[TimeRecord]:
        stmt = select(TimeRecord).where(
            TimeRecord.execution_id == execution_id,
            TimeRecord.break_start.is_not(None),
            TimeRecord.break_end.is_(None),
        )
        return list(self.session.exec(stmt).all())

    def list_active(self, statuses: Sequence[str]) -> list[tuple[MoveExecution, Deal]]:
        stmt = (
            select(MoveExecution, Deal)
            .join(Deal, MoveExecution.deal_id == Deal.id)
            .where(MoveExecution.status.in_(list(statuses)))
            .order_by(MoveExecution.created_at.desc(), MoveExecution.id.desc())
        )
        return list(self.session.exec(stmt).all())

    def list_time_records(self, execution_id: int) -> list[tuple[TimeRecord, Employee]]:
        stmt = (
            select(TimeRecord, Employee)
            .join(Employee, TimeRecord.employee_id == Employee.id)
            .where(TimeRecord.execution_id == execution_id)
            .order_by(TimeRecord.start_time.desc(), TimeRecord.id.desc())
        )
        return list(self.session.exec(stmt).all())

    def list_team(self, execution_id: int) -> list[tuple[TimeRecord, Employee]]:
        stmt = (
            select(TimeRecord, Employee)
            .join(Employee, TimeRecord.employee_id == Employee.id)
            .where(TimeRecord.execution_id == execution_id)
            .order_by(Employee.first_name, Employee.last_name, TimeRecord.id)
        )
        return list(self.session.exec(stmt).all())

    def list_material_usage(self, execution_id: int) -> list[tuple[MoveMaterialUsage, Material]]:
        stmt = (
            select(MoveMaterialUsage, Material)
            .join(Material, MoveMaterialUsage.material_id == Material.id)
            .where(MoveMaterialUsage.execution_id == execution_id)
            .order_by(MoveMaterialUsage.id)
        )
        return list(self.session.exec(stmt).all())
