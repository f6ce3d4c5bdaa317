# app/routes/clients.py
from datetime import datetime, timezone
from typing import Dict, List

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session, select

from app.auth import AuthUser, get_clerk_client, require_admin, require_user, user_email
from app.db.session import get_session
from app.errors import ApiError
from app.models.client import Client, ClientCreate, ClientRead, ClientSync, ClientUpdate
from app.services import clients as client_service
from app.services.clerk_client import ClerkClient

router = APIRouter(
    prefix="/api/clients",
    tags=["clients"],
)

SessionDep = Depends(get_session)
AdminDep = Depends(require_admin)


@router.get("/me", response_model=ClientRead, summary="Fiche client de l'utilisateur connecté")
def my_client(
    response: Response,
    session: Session = SessionDep,
    user: AuthUser = Depends(require_user),
    clerk: ClerkClient = Depends(get_clerk_client),
) -> Client:
    """Crée la fiche au premier appel (email récupéré auprès de Clerk)."""
    email = user_email(user, clerk)
    if not email:
        raise ApiError(400, "Missing Clerk user data")

    client, created = client_service.sync_client(session, user.user_id, email=email)
    if created:
        response.status_code = 201
    return client


@router.post("/sync", response_model=ClientRead, summary="Synchroniser la fiche client (upsert par clerk_id)")
def sync_client(
    payload: ClientSync,
    response: Response,
    session: Session = SessionDep,
    user: AuthUser = Depends(require_user),
) -> Client:
    client, created = client_service.sync_client(
        session, user.user_id, email=payload.email, name=payload.name, phone=payload.phone,
    )
    if created:
        response.status_code = 201
    return client


@router.get("", response_model=List[ClientRead], summary="Lister les clients", dependencies=[AdminDep])
def list_clients(session: Session = SessionDep) -> List[Client]:
    return list(session.exec(select(Client).order_by(Client.id.desc())).all())


@router.post("", response_model=ClientRead, status_code=201, summary="Créer un client", dependencies=[AdminDep])
def create_client(payload: ClientCreate, response: Response, session: Session = SessionDep) -> Client:
    existing = None
    if payload.clerk_id:
        existing = client_service.find_by_clerk_id(session, payload.clerk_id)
    if existing is None:
        existing = client_service.find_by_email(session, payload.email)

    if existing is not None:
        # fiche créée à la main avant l'inscription : on la rattache au compte
        if not existing.clerk_id and payload.clerk_id:
            existing.clerk_id = payload.clerk_id
            existing.updated_at = datetime.now(timezone.utc)
            session.add(existing)
            session.commit()
            session.refresh(existing)
            response.status_code = 200
            return existing
        raise ApiError(409, "Client already exists")

    client = Client(**payload.model_dump())
    session.add(client)
    session.commit()
    session.refresh(client)
    return client


@router.patch("/{client_id}", response_model=ClientRead, summary="Modifier un client", dependencies=[AdminDep])
def update_client(client_id: int, payload: ClientUpdate, session: Session = SessionDep) -> Client:
    client = session.get(Client, client_id)
    if client is None:
        raise ApiError(404, "Client not found")

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(client, key, value)

    client.updated_at = datetime.now(timezone.utc)
    session.add(client)
    session.commit()
    session.refresh(client)
    return client


@router.delete("/{client_id}", summary="Supprimer un client", dependencies=[AdminDep])
def delete_client(client_id: int, session: Session = SessionDep) -> Dict[str, bool]:
    client = session.get(Client, client_id)
    if client is None:
        raise ApiError(404, "Client not found")

    session.delete(client)
    session.commit()
    return {"ok": True}
