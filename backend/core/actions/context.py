"""
core/actions/context.py

Per-request dispatch state.

Nothing in here is shared between requests: every request builds its own
DispatchContext, output writer and identity. The message queue is the only
member that outlives the request, because it belongs to the caller's session.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union
import logging

from core.actions.messages import MessageQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    """
    Who is calling.

    Attributes:
        user_id: Logged-in user id, None for anonymous callers
        is_admin: Whether the caller is an administrator
    """

    user_id: Optional[int] = None
    is_admin: bool = False

    @property
    def is_logged_in(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "CallerIdentity":
        return cls()


class StreamWriter:
    """
    Writes handler output straight to the transport.

    With no sink attached (a redirect has no body) the output is dropped.
    """

    def __init__(self, sink: Optional[Callable[[str], Any]] = None):
        self._sink = sink

    def write(self, text: str) -> None:
        if self._sink is None:
            logger.debug(f"Discarding {len(text)} chars of action output")
            return
        self._sink(text)


class BufferedWriter:
    """Collects handler output in memory until the response is built."""

    def __init__(self):
        self._chunks: List[str] = []
        self._closed = False

    def write(self, text: str) -> None:
        if self._closed:
            raise ValueError("write to a drained output buffer")
        self._chunks.append(text)

    def getvalue(self) -> str:
        return "".join(self._chunks)

    def drain(self) -> str:
        """Return everything written and close the buffer."""
        value = self.getvalue()
        self._chunks.clear()
        self._closed = True
        return value

    @property
    def closed(self) -> bool:
        return self._closed


OutputWriter = Union[StreamWriter, BufferedWriter]


@dataclass
class DispatchContext:
    """
    State of one dispatch cycle.

    Attributes:
        action: Requested action name
        forwarder: Where to send the caller afterwards (sanitized during dispatch)
        identity: Caller identity
        is_async: Whether the caller wants a JSON envelope instead of a redirect
        output: Writer handlers print to
        messages: User-visible messages of the caller's session
        token: Submitted security token
        timestamp: Submitted token timestamp, as received
        session_id: Caller session id
        session_salt: Per-session salt mixed into tokens
        current_url: URL of the current request
        params: Request inputs (query, form or JSON body)
        services: Per-request collaborators for handlers (db session, ...)
    """

    action: str = ""
    forwarder: str = ""
    identity: CallerIdentity = field(default_factory=CallerIdentity)
    is_async: bool = False
    output: OutputWriter = field(default_factory=StreamWriter)
    messages: MessageQueue = field(default_factory=MessageQueue)
    token: Optional[str] = None
    timestamp: Optional[str] = None
    session_id: Optional[str] = None
    session_salt: str = ""
    current_url: str = ""
    params: Dict[str, Any] = field(default_factory=dict)
    services: Dict[str, Any] = field(default_factory=dict)

    def get_input(self, name: str, default: Any = None) -> Any:
        """Request input by name"""
        value = self.params.get(name)
        if value is None or value == "":
            return default
        return value

    def service(self, name: str) -> Any:
        """
        Per-request collaborator by name.

        Raises:
            KeyError: If the web layer did not provide it
        """
        if name not in self.services:
            raise KeyError(f"Service '{name}' is not available in this request")
        return self.services[name]


__all__ = [
    "CallerIdentity",
    "StreamWriter",
    "BufferedWriter",
    "OutputWriter",
    "DispatchContext",
]
