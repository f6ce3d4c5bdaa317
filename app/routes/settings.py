# app/routes/settings.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app import config
from app.auth import require_admin
from app.db.session import get_session
from app.logging_setup import log
from app.models.shop_settings import ShopSettings, ShopSettingsRead, ShopSettingsUpdate

router = APIRouter(
    prefix="/api/settings",
    tags=["settings"],
)

SessionDep = Depends(get_session)
SETTINGS_ID = 1


def get_or_create_settings(session: Session) -> ShopSettings:
    settings = session.get(ShopSettings, SETTINGS_ID)
    if settings is None:
        settings = ShopSettings(
            id=SETTINGS_ID,
            default_shipping_fee=config.DEFAULT_SHIPPING_FEE,
            free_shipping_threshold=config.FREE_SHIPPING_THRESHOLD,
        )
        session.add(settings)
        session.commit()
        session.refresh(settings)
    return settings


def _read(settings: ShopSettings) -> ShopSettingsRead:
    return ShopSettingsRead(
        default_shipping_fee=settings.default_shipping_fee
        if settings.default_shipping_fee is not None else config.DEFAULT_SHIPPING_FEE,
        free_shipping_threshold=settings.free_shipping_threshold
        if settings.free_shipping_threshold is not None else config.FREE_SHIPPING_THRESHOLD,
        updated_at=settings.updated_at,
    )


@router.get("", response_model=ShopSettingsRead, summary="Paramètres de la boutique (public)")
def read_settings(session: Session = SessionDep) -> ShopSettingsRead:
    return _read(get_or_create_settings(session))


@router.put(
    "",
    response_model=ShopSettingsRead,
    summary="Modifier les frais de livraison",
    dependencies=[Depends(require_admin)],
)
def update_settings(payload: ShopSettingsUpdate, session: Session = SessionDep) -> ShopSettingsRead:
    settings = get_or_create_settings(session)
    settings.default_shipping_fee = payload.default_shipping_fee
    settings.free_shipping_threshold = payload.free_shipping_threshold
    settings.updated_at = datetime.now(timezone.utc)
    session.add(settings)
    session.commit()
    session.refresh(settings)

    log.info(
        "[Settings] updated: threshold=%s fee=%s",
        settings.free_shipping_threshold, settings.default_shipping_fee,
    )
    return _read(settings)
