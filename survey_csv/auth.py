from __future__ import annotations

import hmac

from .config import DEFAULT_ADMIN_PASSWORD


class AuthManager:
    """Gate for the admin-only export."""

    def __init__(self, admin_password: str = DEFAULT_ADMIN_PASSWORD) -> None:
        self.admin_password = admin_password

    def authenticate(self, password: str) -> bool:
        if not password:
            return False
        return hmac.compare_digest(password.encode("utf-8"), self.admin_password.encode("utf-8"))
