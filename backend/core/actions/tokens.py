"""
core/actions/tokens.py

Security token codec for actions.

A token is a SHA-256 digest of the site secret, a unix timestamp, the session
id and a per-session salt. Nothing is stored server side: validation simply
derives the token again from the submitted timestamp and compares.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
import hashlib
import hmac
import time

# Tokens are accepted for one hour either side of the validator's clock
TOKEN_WINDOW_SECONDS = 3600

DEFAULT_TOKEN_FIELD = "__action_token"
DEFAULT_TS_FIELD = "__action_ts"


@dataclass(frozen=True)
class SecurityToken:
    """
    A derived token and the timestamp it was derived for.

    Attributes:
        token: Hex digest
        timestamp: Unix timestamp (seconds) used for the derivation
    """

    token: str
    timestamp: int

    def as_params(
        self,
        token_field: str = DEFAULT_TOKEN_FIELD,
        ts_field: str = DEFAULT_TS_FIELD,
    ) -> Dict[str, str]:
        """Token pair as request parameters."""
        return {token_field: self.token, ts_field: str(self.timestamp)}


def derive_token(
    timestamp: Union[int, str],
    secret: Optional[str],
    session_id: Optional[str],
    session_salt: Optional[str] = "",
) -> Optional[str]:
    """
    Derive the token for a timestamp and session.

    Returns None when the secret or the session id is missing, so callers can
    never end up comparing against a guessable value.
    """
    if not secret or not session_id:
        return None
    material = "|".join((str(secret), str(timestamp), str(session_id), str(session_salt or "")))
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class TokenCodec:
    """
    Derives, checks and time-boxes security tokens.

    The codec holds no per-request state; it is safe to share between
    threads.

    Example:
        ```python
        codec = TokenCodec()
        pair = codec.generate(secret, session_id, salt)
        codec.matches(pair.token, pair.timestamp, secret, session_id, salt)  # True
        codec.within_window(pair.timestamp)  # True
        ```
    """

    def __init__(
        self,
        window_seconds: int = TOKEN_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            window_seconds: Half width of the accepted window around "now"
            clock: Returns the current unix time; injectable for tests
        """
        self.window_seconds = window_seconds
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    def derive(
        self,
        timestamp: Union[int, str],
        secret: Optional[str],
        session_id: Optional[str],
        session_salt: Optional[str] = "",
    ) -> Optional[str]:
        return derive_token(timestamp, secret, session_id, session_salt)

    def generate(
        self,
        secret: Optional[str],
        session_id: Optional[str],
        session_salt: Optional[str] = "",
        timestamp: Optional[int] = None,
    ) -> Optional[SecurityToken]:
        """
        Build a token for "now" (or the given timestamp).

        Returns:
            SecurityToken, or None when no token can be derived
        """
        if timestamp is None:
            timestamp = self.now()
        token = self.derive(timestamp, secret, session_id, session_salt)
        if token is None:
            return None
        return SecurityToken(token=token, timestamp=int(timestamp))

    def matches(
        self,
        token: str,
        timestamp: Union[int, str],
        secret: Optional[str],
        session_id: Optional[str],
        session_salt: Optional[str] = "",
    ) -> bool:
        """Compare a submitted token with a fresh derivation (constant time)."""
        expected = self.derive(timestamp, secret, session_id, session_salt)
        if expected is None or not token:
            return False
        return hmac.compare_digest(str(token), expected)

    def within_window(self, timestamp: int, now: Optional[int] = None) -> bool:
        """
        True if the timestamp lies strictly inside now ± window.

        Both bounds are exclusive: now - window and now + window fail.
        """
        if now is None:
            now = self.now()
        return now - self.window_seconds < int(timestamp) < now + self.window_seconds


def add_tokens_to_url(
    url: str,
    token: SecurityToken,
    token_field: str = DEFAULT_TOKEN_FIELD,
    ts_field: str = DEFAULT_TS_FIELD,
) -> str:
    """
    Append a token pair to a URL's query string.

    Existing token parameters are replaced; every other parameter and the
    fragment are kept.

    Example:
        >>> add_tokens_to_url("http://site/action/logout?x=1", SecurityToken("abc", 10))
        'http://site/action/logout?x=1&__action_token=abc&__action_ts=10'
    """
    parts = urlsplit(url)
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in (token_field, ts_field)
    ]
    query.extend(token.as_params(token_field, ts_field).items())
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


__all__ = [
    "TOKEN_WINDOW_SECONDS",
    "DEFAULT_TOKEN_FIELD",
    "DEFAULT_TS_FIELD",
    "SecurityToken",
    "TokenCodec",
    "derive_token",
    "add_tokens_to_url",
]
