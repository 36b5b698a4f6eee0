"""Service behaviour against an in-memory repository (no database)."""

import itertools
from contextlib import contextmanager
from datetime import date

import pytest

from moveops.error import NotFound, ValidationFailed
from moveops.models import Deal, Employee, Material, MoveExecution, MoveMaterialUsage, TimeRecord
from moveops.schemas import ExecutionStatus, MaterialUsageItem, PauseAction
from moveops.services.executions import MoveExecutionService


class InMemoryExecutionRepository:
    def __init__(self):
        self.deals: dict[int, Deal] = {}
        self.employees: dict[int, Employee] = {}
        self.materials: dict[int, Material] = {}
        self.executions: dict[int, MoveExecution] = {}
        self.time_records: dict[int, TimeRecord] = {}
        self.usage: dict[int, MoveMaterialUsage] = {}
        self._ids = {name: itertools.count(1) for name in self._table_names()}

    @staticmethod
    def _table_names():
        return ("deals", "employees", "materials", "executions", "time_records", "usage")

    def _insert(self, table: str, obj):
        if obj.id is None:
            obj.id = next(self._ids[table])
        getattr(self, table)[obj.id] = obj
        return obj

    @contextmanager
    def transaction(self):
        snapshot = {
            name: {k: (obj, obj.model_dump()) for k, obj in getattr(self, name).items()}
            for name in self._table_names()
        }
        try:
            yield self
        except BaseException:
            for name, rows in snapshot.items():
                table = getattr(self, name)
                table.clear()
                for k, (obj, values) in rows.items():
                    for field, value in values.items():
                        setattr(obj, field, value)
                    table[k] = obj
            raise

    def get_deal(self, deal_id):
        return self.deals.get(deal_id)

    def get_employee(self, employee_id):
        return self.employees.get(employee_id)

    def get_material(self, material_id):
        return self.materials.get(material_id)

    def get_execution(self, execution_id):
        return self.executions.get(execution_id)

    def add_execution(self, execution):
        return self._insert("executions", execution)

    def add_time_record(self, record):
        return self._insert("time_records", record)

    def delete_time_record(self, record):
        del self.time_records[record.id]

    def add_material_usage(self, usage):
        return self._insert("usage", usage)

    def save(self, obj):
        pass

    def open_time_records(self, execution_id):
        return [r for r in self.time_records.values() if r.execution_id == execution_id and r.end_time is None]

    def open_break_records(self, execution_id):
        return [
            r for r in self.time_records.values()
            if r.execution_id == execution_id and r.break_start is not None and r.break_end is None
        ]

    def list_active(self, statuses):
        rows = [(e, self.deals[e.deal_id]) for e in self.executions.values() if e.status in statuses]
        return sorted(rows, key=lambda row: (row[0].created_at, row[0].id), reverse=True)

    def list_time_records(self, execution_id):
        rows = [(r, self.employees[r.employee_id]) for r in self.time_records.values()
                if r.execution_id == execution_id]
        return sorted(rows, key=lambda row: (row[0].start_time, row[0].id), reverse=True)

    def list_team(self, execution_id):
        rows = [(r, self.employees[r.employee_id]) for r in self.time_records.values()
                if r.execution_id == execution_id]
        return sorted(rows, key=lambda row: (row[1].first_name, row[1].last_name, row[0].id))

    def list_material_usage(self, execution_id):
        return [(u, self.materials[u.material_id]) for u in self.usage.values() if u.execution_id == execution_id]


@pytest.fixture
def repo():
    r = InMemoryExecutionRepository()
    r._insert("deals", Deal(id=1, title="Family move", move_date=date(2026, 6, 1)))
    r._insert("employees", Employee(id=10, first_name="Dora", last_name="Klein"))
    r._insert("employees", Employee(id=11, first_name="Emil", last_name="Wolf"))
    r._insert("materials", Material(id=3, name="Blanket", current_stock=20))
    r._ids["executions"] = itertools.count(5)
    return r


def test_full_move_lifecycle(repo, clock):
    service = MoveExecutionService(repo, clock=clock)

    execution = service.start(1, [10, 11])
    assert execution.id == 5
    assert execution.status == "in_progress"
    assert sorted(r.employee_id for r in repo.time_records.values()) == [10, 11]

    assert service.toggle_pause(5, PauseAction.PAUSE) == ExecutionStatus.PAUSED
    assert all(r.break_start is not None for r in repo.time_records.values())

    assert service.toggle_pause(5, PauseAction.RESUME) == ExecutionStatus.IN_PROGRESS
    assert all(r.break_end is not None for r in repo.time_records.values())

    service.complete(5, [MaterialUsageItem(material_id=3, quantity=2)], "done")

    assert repo.executions[5].status == "completed"
    assert repo.executions[5].end_time is not None
    assert repo.executions[5].notes == "done"
    assert all(r.end_time is not None for r in repo.time_records.values())
    [usage] = repo.usage.values()
    assert (usage.execution_id, usage.material_id, usage.quantity) == (5, 3, 2)
    assert repo.materials[3].current_stock == 18
    assert service.get_active() == []


def test_failed_completion_restores_state(repo, clock):
    service = MoveExecutionService(repo, clock=clock)
    execution = service.start(1, [10])

    with pytest.raises(NotFound):
        service.complete(
            execution.id,
            [MaterialUsageItem(material_id=3, quantity=4), MaterialUsageItem(material_id=99, quantity=1)],
        )

    assert repo.materials[3].current_stock == 20
    assert repo.usage == {}
    assert repo.executions[execution.id].status == "in_progress"
    assert all(r.end_time is None for r in repo.time_records.values())


def test_empty_team_creates_nothing(repo, clock):
    service = MoveExecutionService(repo, clock=clock)

    with pytest.raises(ValidationFailed):
        service.start(1, [])

    assert repo.executions == {}
    assert repo.time_records == {}


def test_team_listing_ordered_by_name(repo, clock):
    service = MoveExecutionService(repo, clock=clock)
    execution = service.start(1, [11, 10])

    names = [emp.display_name for _, emp in service.team(execution.id)]

    assert names == ["Dora Klein", "Emil Wolf"]
