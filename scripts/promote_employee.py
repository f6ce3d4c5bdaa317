import os
import sys

# Permet d'importer "app.*" quand on lance ce script directement
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from sqlmodel import Session  # type: ignore

from app.auth import find_employee
from app.db.session import engine, init_db
from app.models.employee import Employee, Role


def promote(db: Session, email: str, role: Role, full_name: str = "") -> Employee:
    employee = find_employee(db, email)
    if employee is None:
        employee = Employee(email=email, full_name=full_name or email, role=role, is_active=True)
    else:
        employee.role = role
        employee.is_active = True
        if full_name:
            employee.full_name = full_name
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print("Usage: python scripts/promote_employee.py email@domaine.com ROLE [NOM]")
        print("Rôles: " + ", ".join(r.value for r in Role))
        return 1

    email = args[0].strip().lower()
    try:
        role = Role(args[1].strip().upper())
    except ValueError:
        print(f"Rôle inconnu: {args[1]}")
        return 2
    full_name = " ".join(args[2:]).strip()

    init_db()
    with Session(engine) as db:
        employee = promote(db, email, role, full_name)

    print(f"✅ Employé #{employee.id} {employee.email} -> {employee.role.value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
