from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from moveops.db import get_session
from moveops.deps import require_user
from moveops.error import abort
from moveops.models import Employee, User, utcnow
from moveops.schemas import EmployeeCreate, EmployeeRead, EmployeeUpdate

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=list[EmployeeRead])
def list_employees(
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    stmt = (
        select(Employee)
        .where(Employee.status == "active")
        .order_by(Employee.first_name, Employee.last_name)
    )
    return session.exec(stmt).all()


@router.post("", response_model=EmployeeRead)
def create_employee(
    data: EmployeeCreate,
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    employee = Employee(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        phone=data.phone,
        role=data.role.value,
    )
    session.add(employee)
    session.commit()
    session.refresh(employee)
    return employee


@router.get("/{employee_id}", response_model=EmployeeRead)
def get_employee(
    employee_id: int,
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    employee = session.get(Employee, employee_id)
    if not employee:
        abort(404, "NOT_FOUND", "Employee not found")
    return employee


@router.put("/{employee_id}", response_model=EmployeeRead)
def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    employee = session.get(Employee, employee_id)
    if not employee:
        abort(404, "NOT_FOUND", "Employee not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(employee, key, getattr(value, "value", value))
    employee.updated_at = utcnow()

    session.add(employee)
    session.commit()
    session.refresh(employee)
    return employee
