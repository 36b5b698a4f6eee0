"""
Move execution service.

Every write operation runs inside exactly one repository transaction: either
all of its rows are committed or none are. Status changes go through the
state machine in `moveops.services.lifecycle`.
"""

import logging
from datetime import datetime
from typing import Callable, Sequence

from moveops.error import IllegalTransition, NotFound, ValidationFailed
from moveops.models import Employee, MoveExecution, MoveMaterialUsage, TimeRecord, utcnow
from moveops.schemas import ExecutionStatus, MaterialUsageItem, PauseAction
from moveops.services.lifecycle import (
    ACTIVE_STATUSES,
    RUNNING_STATUSES,
    ExecutionEvent,
    event_for,
    transition,
)
from moveops.services.repository import ExecutionRepository

logger = logging.getLogger(__name__)


class MoveExecutionService:
    def __init__(self, repo: ExecutionRepository, *, clock: Callable[[], datetime] = utcnow):
        self.repo = repo
        self.clock = clock

    # ---------- helpers ----------

    def _require_execution(self, execution_id: int) -> MoveExecution:
        execution = self.repo.get_execution(execution_id)
        if execution is None:
            raise NotFound(f"execution {execution_id} not found")
        return execution

    def _validate_team(self, team: Sequence[int]) -> list[Employee]:
        if not team:
            raise ValidationFailed("team must contain at least one employee")
        if len(set(team)) != len(team):
            raise ValidationFailed("team contains duplicate employees")

        members = []
        for employee_id in team:
            employee = self.repo.get_employee(employee_id)
            if employee is None:
                raise NotFound(f"employee {employee_id} not found")
            if employee.status != "active":
                raise ValidationFailed(f"employee {employee_id} is not active")
            members.append(employee)
        return members

    def _open_records_for(self, execution_id: int, team: Sequence[int], now: datetime) -> None:
        for employee_id in team:
            self.repo.add_time_record(
                TimeRecord(execution_id=execution_id, employee_id=employee_id, start_time=now)
            )

    # ---------- lifecycle ----------

    def start(self, deal_id: int, team: Sequence[int]) -> MoveExecution:
        """Open a new execution for a deal and a time record per team member."""
        team = list(team)
        with self.repo.transaction():
            if self.repo.get_deal(deal_id) is None:
                raise NotFound(f"deal {deal_id} not found")
            self._validate_team(team)

            now = self.clock()
            status = transition(ExecutionStatus.PENDING, ExecutionEvent.START)
            execution = self.repo.add_execution(
                MoveExecution(
                    deal_id=deal_id,
                    status=status.value,
                    start_time=now,
                    created_at=now,
                    updated_at=now,
                )
            )
            self._open_records_for(execution.id, team, now)

        logger.info("execution %s started for deal %s with %d employees", execution.id, deal_id, len(team))
        return execution

    def toggle_pause(self, execution_id: int, action: PauseAction) -> ExecutionStatus:
        action = PauseAction(action)
        with self.repo.transaction():
            execution = self._require_execution(execution_id)
            new_status = transition(execution.status, event_for(action))

            now = self.clock()
            execution.status = new_status.value
            execution.updated_at = now
            self.repo.save(execution)

            if action == PauseAction.PAUSE:
                records = self.repo.open_time_records(execution_id)
                for rec in records:
                    if rec.break_start is None:
                        rec.break_start = now
                        self.repo.save(rec)
                        continue
                    # a row holds one break: close this segment, the next one starts on break
                    rec.end_time = now
                    self.repo.save(rec)
                    self.repo.add_time_record(
                        TimeRecord(
                            execution_id=execution_id,
                            employee_id=rec.employee_id,
                            start_time=now,
                            break_start=now,
                        )
                    )
            else:
                records = self.repo.open_break_records(execution_id)
                for rec in records:
                    rec.break_end = now
                    self.repo.save(rec)

        logger.info("execution %s %s: %d time records touched", execution_id, new_status.value, len(records))
        return new_status

    def complete(
        self,
        execution_id: int,
        material_usage: Sequence[MaterialUsageItem],
        notes: str | None = None,
    ) -> MoveExecution:
        """
        Finish an execution: close its time records and book material consumption.

        Stock is decremented without checking availability, so a material can
        end up below zero. An unknown material rolls back the whole completion.
        """
        with self.repo.transaction():
            execution = self._require_execution(execution_id)
            new_status = transition(execution.status, ExecutionEvent.COMPLETE)

            now = self.clock()
            execution.status = new_status.value
            execution.end_time = now
            execution.notes = notes
            execution.updated_at = now
            self.repo.save(execution)

            for rec in self.repo.open_time_records(execution_id):
                rec.end_time = now
                if rec.break_start is not None and rec.break_end is None:
                    rec.break_end = now
                self.repo.save(rec)

            for item in material_usage:
                if item.quantity <= 0:
                    raise ValidationFailed(f"quantity for material {item.material_id} must be > 0")
                material = self.repo.get_material(item.material_id)
                if material is None:
                    raise NotFound(f"material {item.material_id} not found")

                self.repo.add_material_usage(
                    MoveMaterialUsage(
                        execution_id=execution_id,
                        material_id=item.material_id,
                        quantity=item.quantity,
                        created_at=now,
                    )
                )
                material.current_stock -= item.quantity
                material.updated_at = now
                self.repo.save(material)

                if material.current_stock < 0:
                    logger.warning(
                        "material %s (%s) stock is negative after execution %s: %s",
                        material.id, material.name, execution_id, material.current_stock,
                    )

        logger.info("execution %s completed, %d materials booked", execution_id, len(material_usage))
        return execution

    def replace_team(self, execution_id: int, team: Sequence[int]) -> list[tuple[TimeRecord, Employee]]:
        """Swap the open time records of a running execution for a new crew."""
        team = list(team)
        with self.repo.transaction():
            execution = self._require_execution(execution_id)
            if ExecutionStatus(execution.status) not in RUNNING_STATUSES:
                raise IllegalTransition(
                    f"cannot change the team of an execution that is {execution.status}"
                )
            self._validate_team(team)

            for rec in self.repo.open_time_records(execution_id):
                self.repo.delete_time_record(rec)

            now = self.clock()
            self._open_records_for(execution_id, team, now)
            execution.updated_at = now
            self.repo.save(execution)

        logger.info("execution %s team replaced: %s", execution_id, team)
        return self.team(execution_id)

    # ---------- reads ----------

    def get(self, execution_id: int) -> MoveExecution:
        return self._require_execution(execution_id)

    def get_active(self):
        return self.repo.list_active([s.value for s in ACTIVE_STATUSES])

    def time_records(self, execution_id: int):
        self._require_execution(execution_id)
        return self.repo.list_time_records(execution_id)

    def team(self, execution_id: int):
        self._require_execution(execution_id)
        return self.repo.list_team(execution_id)

    def material_usage(self, execution_id: int):
        self._require_execution(execution_id)
        return self.repo.list_material_usage(execution_id)
