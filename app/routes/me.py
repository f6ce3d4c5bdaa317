# app/routes/me.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.auth import AuthUser, find_employee, get_clerk_client, require_user, user_email
from app.db.session import get_session
from app.models.employee import RoleRead
from app.services.clerk_client import ClerkClient

router = APIRouter(
    prefix="/api/me",
    tags=["me"],
)


@router.get("/role", response_model=RoleRead, summary="Rôle de l'utilisateur courant")
def my_role(
    user: AuthUser = Depends(require_user),
    session: Session = Depends(get_session),
    clerk: ClerkClient = Depends(get_clerk_client),
) -> RoleRead:
    """
    role = None pour un client normal (absent de la table employee).
    """
    email = user_email(user, clerk)
    if not email:
        return RoleRead(role=None, is_active=True)

    employee = find_employee(session, email)
    if employee is None:
        return RoleRead(role=None, is_active=True)

    return RoleRead(
        id=employee.id,
        role=employee.role,
        is_active=employee.is_active,
        full_name=employee.full_name,
    )
