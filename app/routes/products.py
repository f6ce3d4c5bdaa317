from datetime import datetime, timezone
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.auth import AuthUser, optional_user, require_role
from app.db.session import get_session
from app.errors import ApiError
from app.models.employee import Role
from app.models.product import PriceQuote, Product, ProductCreate, ProductRead, ProductUpdate
from app.services.cart import purchase_unit_for
from app.services.catalog import dump_combinations, find_combination, is_product_public
from app.services.min_qty import (
    can_purchase,
    format_min_qty_message,
    get_effective_min_qty,
    validate_min_qty_rules,
)
from app.services.pricing import resolve_price
from app.services.stock import get_item_stock

router = APIRouter(
    prefix="/products",
    tags=["products"],
)

SessionDep = Depends(get_session)
CatalogManager = Depends(require_role(Role.ADMIN, Role.PRODUCT_MANAGER))


def _check_min_qty_rules(sale_type: str, min_retail: Optional[int], min_wholesale: Optional[int]) -> None:
    rules = validate_min_qty_rules(sale_type, min_retail, min_wholesale)
    if not rules.valid:
        raise ApiError(400, "Invalid minimum order quantities", "; ".join(rules.errors))


def _get_or_404(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise ApiError(404, "Produit introuvable")
    return product


@router.get(
    "",
    response_model=List[ProductRead],
    summary="Lister les produits publiés",
)
def list_products(
    category: Optional[str] = None,
    session: Session = SessionDep,
) -> List[Product]:
    """
    Retourne les produits visibles, actifs et déjà publiés.
    Aucun paramètre requis -> ne peut PAS renvoyer 422.
    """
    stmt = select(Product)
    if category:
        stmt = stmt.where(Product.category == category)
    products = session.exec(stmt.order_by(Product.id.desc())).all()
    return [p for p in products if is_product_public(p)]


@router.get(
    "/all",
    response_model=List[ProductRead],
    summary="Lister tous les produits (back-office)",
    dependencies=[CatalogManager],
)
def list_all_products(session: Session = SessionDep) -> List[Product]:
    return list(session.exec(select(Product).order_by(Product.id.desc())).all())


@router.get(
    "/{product_id}",
    response_model=ProductRead,
    summary="Récupérer un produit",
)
def get_product(product_id: int, session: Session = SessionDep) -> Product:
    product = _get_or_404(session, product_id)
    if not is_product_public(product):
        raise ApiError(404, "Produit introuvable")
    return product


@router.get(
    "/{product_id}/price",
    response_model=PriceQuote,
    summary="Prix effectif, minimum de commande et stock",
)
def quote_price(
    product_id: int,
    unit: Optional[Literal["piece", "quantity"]] = None,
    combination_id: Optional[str] = None,
    session: Session = SessionDep,
    user: Optional[AuthUser] = Depends(optional_user),
) -> PriceQuote:
    """Sans `unit`, le mode d'achat du client connecté est utilisé (sinon "piece")."""
    if unit is None:
        unit = purchase_unit_for(session, user.user_id) if user else "piece"

    product = _get_or_404(session, product_id)
    combination = find_combination(product, combination_id)
    if combination_id and combination is None:
        raise ApiError(404, "Combination not found")

    pricing = resolve_price(product, combination, unit)
    min_qty = get_effective_min_qty(product, combination, unit)
    stock = get_item_stock(product, combination)

    return PriceQuote(
        product_id=product.id,
        combination_id=combination.id if combination else None,
        unit=unit,
        base_price=pricing.base_price,
        price=pricing.price,
        flash_applied=pricing.flash_applied,
        min_qty=min_qty,
        stock=stock,
        can_purchase=can_purchase(min_qty, stock),
        min_qty_message=format_min_qty_message(min_qty, unit),
    )


@router.post(
    "",
    response_model=ProductRead,
    status_code=201,
    summary="Créer un produit",
    dependencies=[CatalogManager],
)
def create_product(payload: ProductCreate, session: Session = SessionDep) -> Product:
    _check_min_qty_rules(payload.sale_type, payload.min_order_qty_retail, payload.min_order_qty_wholesale)

    data = payload.model_dump()
    data["combinations"] = dump_combinations(payload.combinations)
    product = Product(**data)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@router.put(
    "/{product_id}",
    response_model=ProductRead,
    summary="Mettre à jour un produit",
    dependencies=[CatalogManager],
)
def update_product(product_id: int, payload: ProductUpdate, session: Session = SessionDep) -> Product:
    product = _get_or_404(session, product_id)

    data = payload.model_dump(exclude_unset=True)
    if "combinations" in data:
        data["combinations"] = dump_combinations(payload.combinations or [])
    for key, value in data.items():
        setattr(product, key, value)

    _check_min_qty_rules(product.sale_type, product.min_order_qty_retail, product.min_order_qty_wholesale)

    product.updated_at = datetime.now(timezone.utc)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@router.delete(
    "/{product_id}",
    status_code=204,
    summary="Supprimer un produit",
    dependencies=[CatalogManager],
)
def delete_product(product_id: int, session: Session = SessionDep) -> None:
    product = _get_or_404(session, product_id)
    session.delete(product)
    session.commit()
