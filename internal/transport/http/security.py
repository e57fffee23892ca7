"""
Anti-forgery tokens for the admin page actions.

A token is an HMAC of the admin session id, the action scope and a time
tick. It stays valid for the current and the previous half-lifetime window.
"""
import hashlib
import hmac
import math
import secrets
import time
from typing import Optional

from pkg.logger.logger import get_logger


logger = get_logger(__name__)


DEFAULT_ACTION = "inventory_insights"
TOKEN_LENGTH = 32


class NonceManager:
    """Issues and verifies per-session anti-forgery tokens."""

    def __init__(
        self,
        secret: Optional[str] = None,
        lifetime_seconds: int = 86400,
        action: str = DEFAULT_ACTION,
    ) -> None:
        """
        Initialize the nonce manager.

        Args:
            secret: HMAC key. A random key is generated when empty, which
                invalidates tokens on restart.
            lifetime_seconds: Maximum token lifetime.
            action: Scope the tokens are bound to.
        """
        if not secret:
            logger.warning("No nonce secret configured, using a random per-process key")
            secret = secrets.token_hex(32)
        self._secret = secret.encode("utf-8")
        self._half_life = max(lifetime_seconds, 2) / 2
        self._action = action

    def _tick(self, now: Optional[float] = None) -> int:
        return math.ceil((time.time() if now is None else now) / self._half_life)

    def _token(self, session_id: str, tick: int) -> str:
        message = f"{tick}|{self._action}|{session_id}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()[:TOKEN_LENGTH]

    def create(self, session_id: str, now: Optional[float] = None) -> str:
        """Issue a token for an admin session."""
        return self._token(session_id, self._tick(now))

    def verify(
        self,
        token: Optional[str],
        session_id: Optional[str],
        now: Optional[float] = None,
    ) -> bool:
        """Check a token against the current and the previous tick."""
        if not token or not session_id:
            return False
        tick = self._tick(now)
        # Bytes, so non-ASCII input compares unequal instead of raising
        given = token.encode("utf-8")
        return any(
            hmac.compare_digest(given, self._token(session_id, t).encode("utf-8"))
            for t in (tick, tick - 1)
        )
