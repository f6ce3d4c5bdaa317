# app/errors.py
from typing import Any, Dict, Optional

from fastapi import HTTPException


class DomainError(Exception):
    """Erreur métier qui doit annuler la transaction en cours."""

    status_code = 400


class ProductNotFound(DomainError):
    def __init__(self, product_id: Any) -> None:
        super().__init__("Product not found")
        self.product_id = product_id


class InsufficientStock(DomainError):
    def __init__(self, product_id: Any, combination_id: Optional[str] = None) -> None:
        super().__init__("Stock insuffisant")
        self.product_id = product_id
        self.combination_id = combination_id


class ApiError(HTTPException):
    """HTTPException rendue avec l'enveloppe {error, message, ...extra}."""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: Optional[str] = None,
        **extra: Any,
    ) -> None:
        body: Dict[str, Any] = {"error": error}
        if message:
            body["message"] = message
        body.update({k: v for k, v in extra.items() if v is not None})
        super().__init__(status_code=status_code, detail=body)


def error_body(detail: Any) -> Dict[str, Any]:
    if isinstance(detail, dict) and "error" in detail:
        return detail
    return {"error": str(detail)}
