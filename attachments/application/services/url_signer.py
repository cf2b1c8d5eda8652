"""Signed, time-boxed download tokens (Fernet)."""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime
from typing import TYPE_CHECKING, Any

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from attachments.application.dtos.attachment import SignedUrlPayload
from attachments.domain.enums import Disposition
from attachments.domain.exceptions import InvalidTokenException
from attachments.shared.utils.datetime import from_timestamp_utc, to_timestamp, utc_now

if TYPE_CHECKING:
    from attachments.core.config import Settings

KDF_ITERATIONS = 100_000


class UrlSigner:
    """Issue and resolve encrypted download tokens.

    The token is a Fernet token over {"id", "expire", "issued_at", "disposition"}
    (epoch seconds). The key is derived from secret_key + encryption_salt via
    PBKDF2-HMAC-SHA256. Tokens are URL-safe base64 and carry no plaintext.
    """

    def __init__(self, settings: "Settings | None" = None) -> None:
        if settings is None:
            from attachments.core.config import get_settings

            settings = get_settings()
        self._fernet = Fernet(
            self._derive_key(
                settings.secret_key.get_secret_value(),
                settings.encryption_salt.get_secret_value(),
            )
        )

    @staticmethod
    def _derive_key(secret_key: str, salt: str) -> bytes:
        """Derive 32-byte Fernet key via PBKDF2-HMAC-SHA256."""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt.encode(),
            iterations=KDF_ITERATIONS,
        )
        derived = kdf.derive(secret_key.encode())
        return base64.urlsafe_b64encode(derived)

    def issue(
        self,
        identifier: str,
        expire: datetime,
        disposition: Disposition | str = Disposition.ATTACHMENT,
    ) -> str:
        """Return a token granting access to identifier until expire."""
        payload = {
            "id": identifier,
            "expire": to_timestamp(expire),
            "issued_at": to_timestamp(utc_now()),
            "disposition": Disposition(disposition).value,
        }
        return self._fernet.encrypt(json.dumps(payload).encode()).decode()

    def resolve(self, token: str) -> SignedUrlPayload:
        """Decrypt and validate token. Expiry is left to the caller (payload.is_expired).

        Raises:
            InvalidTokenException: Tampered, truncated, non-canonical or malformed token.
        """
        raw_token = self._canonical_bytes(token)
        try:
            decrypted = self._fernet.decrypt(raw_token)
        except InvalidToken as e:
            raise InvalidTokenException("decryption failed") from e
        try:
            data = json.loads(decrypted.decode())
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidTokenException("payload is not valid JSON") from e
        return self._to_payload(data)

    @staticmethod
    def _canonical_bytes(token: str) -> bytes:
        """Reject tokens whose base64 text is not the exact encoding of its bytes.

        Base64 decoding tolerates altered padding bits, which would make two
        distinct strings decode to one valid token.
        """
        if not token:
            raise InvalidTokenException("empty token")
        try:
            raw_token = token.encode("ascii")
            decoded = base64.urlsafe_b64decode(raw_token)
        except (UnicodeEncodeError, binascii.Error, ValueError) as e:
            raise InvalidTokenException("token is not base64") from e
        if base64.urlsafe_b64encode(decoded) != raw_token:
            raise InvalidTokenException("token is not canonically encoded")
        return raw_token

    @staticmethod
    def _to_payload(data: Any) -> SignedUrlPayload:
        if not isinstance(data, dict):
            raise InvalidTokenException("payload must be an object")
        identifier = data.get("id")
        expire = data.get("expire")
        issued_at = data.get("issued_at")
        disposition = data.get("disposition")
        if not isinstance(identifier, str) or not identifier:
            raise InvalidTokenException("missing id")
        if not isinstance(expire, int) or isinstance(expire, bool):
            raise InvalidTokenException("missing expire")
        if not isinstance(issued_at, int) or isinstance(issued_at, bool):
            raise InvalidTokenException("missing issued_at")
        if disposition not in Disposition.values():
            raise InvalidTokenException("unknown disposition")
        return SignedUrlPayload(
            identifier=identifier,
            expire=from_timestamp_utc(expire),
            issued_at=from_timestamp_utc(issued_at),
            disposition=Disposition(disposition),
        )
