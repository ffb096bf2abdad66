"""Security helpers for password hashing, encryption, and session cookies."""
from __future__ import annotations

import base64
import hashlib
import secrets

from cryptography.fernet import Fernet, InvalidToken
from itsdangerous import BadSignature, URLSafeSerializer
from passlib.context import CryptContext

from .config import get_settings


_password_context = CryptContext(schemes=["argon2"], deprecated="auto")


class PasswordHasher:
    """Hash and verify user passwords using Argon2id."""

    @staticmethod
    def hash(password: str) -> str:
        return _password_context.hash(password)

    @staticmethod
    def verify(password: str, hashed: str) -> bool:
        return _password_context.verify(password, hashed)


def _derive_fernet_key(secret: str) -> bytes:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class SecretManager:
    """Encrypt and decrypt alert channel endpoints with Fernet."""

    def __init__(self, key: str | None = None) -> None:
        settings = get_settings()
        raw_key = key or settings.encryption_key or settings.secret_key
        self._fernet = Fernet(_derive_fernet_key(raw_key))

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> str:
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("Invalid encryption token") from exc


def generate_session_token() -> str:
    return secrets.token_urlsafe(48)


class SessionSigner:
    """Sign the database session token before it goes into the cookie.

    Expiry is tracked on the session row, so the signature only guards
    against tampered or forged cookie values.
    """

    def __init__(self, salt: str = "eco-monitor-session") -> None:
        settings = get_settings()
        self._serializer = URLSafeSerializer(settings.secret_key, salt=salt)

    def dumps(self, token: str) -> str:
        return self._serializer.dumps(token)

    def loads(self, value: str) -> str:
        try:
            token = self._serializer.loads(value)
        except BadSignature as exc:
            raise ValueError("Invalid session cookie") from exc
        if not isinstance(token, str):
            raise ValueError("Invalid session cookie")
        return token
