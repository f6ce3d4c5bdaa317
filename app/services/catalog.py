# app/services/catalog.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.models.product import Combination, Product

log = logging.getLogger("uvicorn.error")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite rend des datetimes naïfs : on les considère en UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalize_raw_combination(raw: Dict[str, Any]) -> Dict[str, Any]:
    # anciens enregistrements: "combinationId", clés camelCase
    return {
        "id": raw.get("id") or raw.get("combinationId") or raw.get("combination_id"),
        "options": raw.get("options") or {},
        "price_piece": raw.get("price_piece", raw.get("pricePiece")),
        "price_quantity": raw.get("price_quantity", raw.get("priceQuantity")),
        "stock": raw.get("stock"),
        "min_order_qty_retail": raw.get("min_order_qty_retail", raw.get("minOrderQtyRetail")),
        "min_order_qty_wholesale": raw.get("min_order_qty_wholesale", raw.get("minOrderQtyWholesale")),
    }


def parse_combinations(raw_combinations: Any, product_id: Any = None) -> List[Combination]:
    """
    Transforme le JSON stocké sur Product en liste de Combination validées.
    Les entrées invalides sont ignorées (avec un warning).
    """
    if not isinstance(raw_combinations, list):
        return []

    parsed: List[Combination] = []
    for idx, raw in enumerate(raw_combinations):
        if not isinstance(raw, dict):
            log.warning("Product %s: combination #%d is not an object, skipped", product_id, idx)
            continue
        try:
            parsed.append(Combination.model_validate(_normalize_raw_combination(raw)))
        except ValidationError as e:
            log.warning("Product %s: invalid combination #%d skipped (%s)", product_id, idx, e.errors())
    return parsed


def dump_combinations(combinations: List[Combination]) -> List[Dict[str, Any]]:
    return [c.model_dump() for c in combinations]


def find_combination(product: Product, combination_id: Optional[str]) -> Optional[Combination]:
    if not combination_id:
        return None
    wanted = str(combination_id)
    for combo in parse_combinations(product.combinations, product.id):
        if combo.id == wanted:
            return combo
    return None


def is_product_public(product: Optional[Product], now: Optional[datetime] = None) -> bool:
    if product is None:
        return False
    if product.visible is False:
        return False
    if product.status != "Active":
        return False

    publish_at = as_utc(product.publish_at)
    if publish_at is not None:
        now = now or datetime.now(timezone.utc)
        if publish_at > now:
            return False

    return True


def primary_image(product: Product) -> Optional[str]:
    images = product.images or []
    return images[0] if images else None
