from typing import Any, Dict, Optional

import requests

from app import config


class ClerkError(RuntimeError):
    pass


class ClerkClient:
    """Client minimal de l'API backend Clerk (clé secrète, pas de session)."""

    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None) -> None:
        self.secret_key = secret_key if secret_key is not None else config.CLERK_SECRET_KEY
        self.base_url = (base_url or config.CLERK_API_URL).rstrip("/")

        if not self.secret_key:
            raise ClerkError("CLERK_SECRET_KEY manquant.")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Accept": "application/json",
        }

    def get_user(self, user_id: str) -> Dict[str, Any]:
        url = f"{self.base_url}/users/{user_id}"
        resp = requests.get(url, headers=self._headers(), timeout=20)
        if resp.status_code != 200:
            # tronque pour éviter d'exploser les logs
            raise ClerkError(f"Erreur Clerk get_user: {resp.status_code} {(resp.text or '')[:500]}")
        return resp.json() or {}

    @staticmethod
    def primary_email(user: Dict[str, Any]) -> Optional[str]:
        addresses = user.get("email_addresses") or []
        primary_id = user.get("primary_email_address_id")

        for entry in addresses:
            if primary_id and entry.get("id") == primary_id:
                return entry.get("email_address")
        if addresses:
            return addresses[0].get("email_address")
        return None

    def get_user_email(self, user_id: str) -> Optional[str]:
        return self.primary_email(self.get_user(user_id))
