from fastapi import APIRouter, Depends

from moveops.deps import get_execution_service, require_user
from moveops.models import User
from moveops.schemas import (
    ActiveMoveRead,
    ExecutionRead,
    MaterialUsageRead,
    MoveComplete,
    MoveStart,
    MoveStartResponse,
    TeamMemberRead,
    TeamUpdate,
    TimeRecordRead,
    TogglePause,
    ToggleResponse,
)
from moveops.services.executions import MoveExecutionService

router = APIRouter(prefix="/moves", tags=["moves"])


def _team_rows(rows) -> list[dict]:
    return [
        {
            "id": emp.id,
            "first_name": emp.first_name,
            "last_name": emp.last_name,
            "role": emp.role,
            "start_time": rec.start_time,
            "end_time": rec.end_time,
            "break_start": rec.break_start,
            "break_end": rec.break_end,
        }
        for rec, emp in rows
    ]


@router.get("/active", response_model=list[ActiveMoveRead])
def list_active_moves(
    service: MoveExecutionService = Depends(get_execution_service),
    _user: User = Depends(require_user),
):
    return [
        {
            **execution.model_dump(),
            "title": deal.title,
            "origin_address": deal.origin_address,
            "destination_address": deal.destination_address,
            "move_date": deal.move_date,
        }
        for execution, deal in service.get_active()
    ]


@router.post("/{deal_id}/start", response_model=MoveStartResponse)
def start_move(
    deal_id: int,
    body: MoveStart,
    service: MoveExecutionService = Depends(get_execution_service),
    _user: User = Depends(require_user),
):
    execution = service.start(deal_id, body.team)
    return {"id": execution.id, "status": execution.status}


@router.post("/{execution_id}/toggle-pause", response_model=ToggleResponse)
def toggle_pause(
    execution_id: int,
    body: TogglePause,
    service: MoveExecutionService = Depends(get_execution_service),
    _user: User = Depends(require_user),
):
    return {"status": service.toggle_pause(execution_id, body.action)}


@router.post("/{execution_id}/complete")
def complete_move(
    execution_id: int,
    body: MoveComplete,
    service: MoveExecutionService = Depends(get_execution_service),
    _user: User = Depends(require_user),
):
    service.complete(execution_id, body.material_usage, body.notes)
    return {"success": True}


@router.get("/{execution_id}", response_model=ExecutionRead)
def get_execution(
    execution_id: int,
    service: MoveExecutionService = Depends(get_execution_service),
    _user: User = Depends(require_user),
):
    return service.get(execution_id)


@router.get("/{execution_id}/time-records", response_model=list[TimeRecordRead])
def list_time_records(
    execution_id: int,
    service: MoveExecutionService = Depends(get_execution_service),
    _user: User = Depends(require_user),
):
    return [
        {**rec.model_dump(), "employee_name": emp.display_name}
        for rec, emp in service.time_records(execution_id)
    ]


@router.get("/{execution_id}/team", response_model=list[TeamMemberRead])
def get_team(
    execution_id: int,
    service: MoveExecutionService = Depends(get_execution_service),
    _user: User = Depends(require_user),
):
    return _team_rows(service.team(execution_id))


@router.put("/{execution_id}/team", response_model=list[TeamMemberRead])
def replace_team(
    execution_id: int,
    body: TeamUpdate,
    service: MoveExecutionService = Depends(get_execution_service),
    _user: User = Depends(require_user),
):
    return _team_rows(service.replace_team(execution_id, body.team))


@router.get("/{execution_id}/materials", response_model=list[MaterialUsageRead])
def list_material_usage(
    execution_id: int,
    service: MoveExecutionService = Depends(get_execution_service),
    _user: User = Depends(require_user),
):
    return [
        {**usage.model_dump(), "material_name": material.name, "unit": material.unit}
        for usage, material in service.material_usage(execution_id)
    ]
