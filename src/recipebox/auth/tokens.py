"""HMAC access tokens.

The tokens file maps identifiers (user names) to base64 encoded
HMAC-SHA256(key, identifier) tokens. A token is accepted when it is listed in
the file and was generated from its identifier with the server's key, so a
hand-edited tokens file cannot grant access without the key.

The file is reloaded when it changes; a failed reload keeps the previous
tokens.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import secrets
import threading
from collections.abc import Mapping
from pathlib import Path

import structlog

from recipebox.core.errors import AuthError

logger = structlog.get_logger()

KEY_BYTES = 32


class HmacTokenSource:
    """HMAC-SHA256 over a fixed key."""

    def __init__(self, key: bytes) -> None:
        self._key = key

    def generate(self, value: bytes) -> bytes:
        return hmac.new(self._key, value, hashlib.sha256).digest()

    @staticmethod
    def verify(token: bytes, actual: bytes) -> bool:
        return hmac.compare_digest(token, actual)

    def verify_is_generated_by(self, token: bytes, by: bytes) -> None:
        """Raise unless ``token`` is the HMAC of ``by``."""
        if not self.verify(token, self.generate(by)):
            raise AuthError.token_mismatch(by.decode("utf-8", errors="replace"))


def encode_token(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def decode_token(token: str) -> bytes:
    return base64.b64decode(token.encode("ascii"), validate=True)


def read_tokens_file(path: Path) -> dict[str, str]:
    """Parse the tokens file into ``{identifier: token}``.

    Raises:
        OSError: If the file cannot be read.
        AuthError: If the file is not a JSON object mapping names to strings.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise AuthError.tokens_file_invalid(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise AuthError.tokens_file_invalid(str(path), "not a JSON object")
    for identifier, token in data.items():
        if not isinstance(token, str):
            raise AuthError.tokens_file_invalid(
                str(path), f"token for '{identifier}' is not a string"
            )
    return data


class TokenManager:
    """Maps tokens presented by clients to identifiers."""

    def __init__(self, cookie_name: str, key: bytes) -> None:
        self.cookie_name = cookie_name
        self._source = HmacTokenSource(key)
        self._lock = threading.Lock()
        self._tokens: dict[str, str] = {}

    def issue(self, identifier: str) -> str:
        """Token for ``identifier`` under this manager's key."""
        return encode_token(self._source.generate(identifier.encode("utf-8")))

    def _verified(self, tokens: Mapping[str, str]) -> dict[str, str]:
        result: dict[str, str] = {}
        for identifier, token in tokens.items():
            try:
                raw = decode_token(token)
            except (binascii.Error, ValueError) as e:
                raise AuthError.token_invalid(identifier, str(e)) from e
            self._source.verify_is_generated_by(raw, identifier.encode("utf-8"))
            result[token] = identifier
        return result

    def reload_from_file(self, path: Path) -> None:
        """Replace the known tokens with the verified contents of ``path``.

        Raises:
            OSError: If the file cannot be read.
            AuthError: If the file is not a JSON object of strings, or a token
                is malformed or was not issued for its identifier.
        """
        tokens = self._verified(read_tokens_file(path))
        with self._lock:
            self._tokens = tokens
        logger.info("tokens_loaded", path=str(path), count=len(tokens))

    def get(self, token: str) -> str | None:
        """Identifier for ``token``, or None if the token is unknown."""
        with self._lock:
            return self._tokens.get(token)

    def token_from_cookies(self, cookies: Mapping[str, str]) -> str | None:
        return cookies.get(self.cookie_name)

    def identify(self, cookies: Mapping[str, str]) -> str | None:
        """Identifier of the client owning these cookies, if authenticated."""
        token = self.token_from_cookies(cookies)
        if token is None:
            return None
        return self.get(token)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


def generate_key() -> bytes:
    return secrets.token_bytes(KEY_BYTES)


def write_tokens_key_file(path: Path, key: bytes) -> None:
    path.write_text(key.hex(), encoding="ascii")


def read_tokens_key_file(path: Path) -> bytes:
    """Read the hex encoded HMAC key."""
    try:
        key = bytes.fromhex(path.read_text(encoding="ascii").strip())
    except ValueError as e:
        raise AuthError.key_invalid(str(path), str(e)) from e
    if not key:
        raise AuthError.key_invalid(str(path), "key is empty")
    return key


def ensure_tokens_file(path: Path) -> None:
    """Create an empty tokens file if none exists."""
    if path.exists():
        return
    logger.info("tokens_file_created", path=str(path))
    path.write_text("{}", encoding="utf-8")


def add_token_to_file(path: Path, identifier: str, token: str) -> None:
    """Store ``token`` for ``identifier`` in the tokens file, replacing any previous one."""
    ensure_tokens_file(path)
    data = read_tokens_file(path)
    data[identifier] = token
    path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
