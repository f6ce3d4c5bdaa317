# app/services/clients.py
"""
Fiche client liée à un compte Clerk. Le mode d'achat (`purchase_unit`)
porté ici décide de la colonne de prix et du minimum de commande.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlmodel import Session, select

from app.models.client import Client

log = logging.getLogger("uvicorn.error")


def _clean(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def find_by_clerk_id(session: Session, clerk_id: str) -> Optional[Client]:
    return session.exec(select(Client).where(Client.clerk_id == clerk_id)).first()


def find_by_email(session: Session, email: Optional[str]) -> Optional[Client]:
    if not email:
        return None
    return session.exec(select(Client).where(Client.email == email)).first()


def sync_client(
    session: Session,
    clerk_id: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    phone: Optional[str] = None,
) -> Tuple[Client, bool]:
    """
    Retrouve le client par clerk_id puis par email, sinon le crée en mode
    "piece". Ne complète que les champs vides (le téléphone est remplacé
    s'il change). Retourne (client, créé ?).
    """
    email, name, phone = _clean(email), _clean(name), _clean(phone)

    client = find_by_clerk_id(session, clerk_id) or find_by_email(session, email)

    if client is None:
        client = Client(clerk_id=clerk_id, email=email, name=name, phone=phone, purchase_unit="piece")
        session.add(client)
        session.commit()
        session.refresh(client)
        log.info("[Clients] created client #%s for %s", client.id, clerk_id)
        return client, True

    changed = False
    if name and not client.name:
        client.name = name
        changed = True
    if email and not client.email:
        client.email = email
        changed = True
    if phone and phone != client.phone:
        client.phone = phone
        changed = True
    if not client.clerk_id:
        client.clerk_id = clerk_id
        changed = True

    if changed:
        client.updated_at = datetime.now(timezone.utc)
        session.add(client)
        session.commit()
        session.refresh(client)
    return client, False
