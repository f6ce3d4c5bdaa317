# app/routes/employees.py
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.auth import find_employee, require_role
from app.db.session import get_session
from app.errors import ApiError
from app.logging_setup import log
from app.models.employee import Employee, EmployeeCreate, EmployeeRead, EmployeeUpdate, Role

router = APIRouter(
    prefix="/api/employees",
    tags=["employees"],
    dependencies=[Depends(require_role(Role.ADMIN))],
)

SessionDep = Depends(get_session)


def _normalize_email(email: Optional[str]) -> Optional[str]:
    email = (email or "").strip().lower()
    return email or None


def _ensure_email_free(session: Session, email: Optional[str], employee_id: Optional[int] = None) -> None:
    if not email:
        return
    other = find_employee(session, email)
    if other is not None and other.id != employee_id:
        raise ApiError(400, "Email ou téléphone déjà utilisé")


def _get_or_404(session: Session, employee_id: int) -> Employee:
    employee = session.get(Employee, employee_id)
    if employee is None:
        raise ApiError(404, "Employé introuvable")
    return employee


def _save(session: Session, employee: Employee) -> Employee:
    employee.updated_at = datetime.now(timezone.utc)
    session.add(employee)
    session.commit()
    session.refresh(employee)
    return employee


@router.get("", response_model=List[EmployeeRead], summary="Lister les employés")
def list_employees(session: Session = SessionDep) -> List[Employee]:
    return list(session.exec(select(Employee).order_by(Employee.id.desc())).all())


@router.post("", response_model=EmployeeRead, status_code=201, summary="Créer un employé")
def create_employee(payload: EmployeeCreate, session: Session = SessionDep) -> Employee:
    email = _normalize_email(payload.email)
    phone = (payload.phone or "").strip() or None
    if not email and not phone:
        raise ApiError(400, "Email ou téléphone est requis pour un employé")
    _ensure_email_free(session, email)

    employee = Employee(full_name=payload.full_name.strip(), email=email, phone=phone, role=payload.role)
    employee = _save(session, employee)
    log.info("[Employees] #%s created with role %s", employee.id, employee.role.value)
    return employee


@router.patch("/{employee_id}", response_model=EmployeeRead, summary="Modifier un employé")
def update_employee(employee_id: int, payload: EmployeeUpdate, session: Session = SessionDep) -> Employee:
    employee = _get_or_404(session, employee_id)
    data = payload.model_dump(exclude_unset=True)

    if "email" in data:
        data["email"] = _normalize_email(data["email"])
        _ensure_email_free(session, data["email"], employee.id)
    if "phone" in data:
        data["phone"] = (data["phone"] or "").strip() or None

    for key, value in data.items():
        if key in ("full_name", "role", "is_active") and value is None:
            continue
        setattr(employee, key, value)

    return _save(session, employee)


@router.patch("/{employee_id}/deactivate", response_model=EmployeeRead, summary="Désactiver un employé")
def deactivate_employee(employee_id: int, session: Session = SessionDep) -> Employee:
    employee = _get_or_404(session, employee_id)
    employee.is_active = False
    employee = _save(session, employee)
    log.info("[Employees] #%s deactivated", employee.id)
    return employee
