"""
core/actions/response.py

JSON responses for asynchronous callers.

Two hooks do the work, so the synchronous and asynchronous paths share the
same pipeline and the same messages:
- buffer_output ("action" hook, every action): swaps the context's writer for
  a BufferedWriter before the handler runs
- intercept_forward ("forward" hook): instead of redirecting, returns the JSON
  envelope as ResponseSent, which ends the pipeline

Envelope format:
    {
        "current_url": "...",
        "forward_url": "...",
        "system_messages": {"messages": [...], "errors": [...]},
        "status": -1 | 0,
        "output": <parsed JSON or raw string>
    }
"""
from typing import Any, List, Mapping, Optional
import json
import logging

from pydantic import BaseModel, Field

from core.actions.context import BufferedWriter, DispatchContext
from core.actions.dispatcher import ACTION_TOPIC, FORWARD_TOPIC
from core.actions.hooks import ALL, Hook, HookBus
from core.actions.results import ResponseSent

logger = logging.getLogger(__name__)

DEFAULT_ASYNC_HEADER = "X-Requested-With"
DEFAULT_ASYNC_MARKER = "xmlhttprequest"

JSON_MEDIA_TYPE = "application/json"

STATUS_OK = 0
STATUS_ERROR = -1


def is_async_client(
    headers: Mapping[str, str],
    header: str = DEFAULT_ASYNC_HEADER,
    marker: str = DEFAULT_ASYNC_MARKER,
) -> bool:
    """
    Whether the request headers mark an asynchronous (XHR) caller.

    Header names and the marker value are compared case-insensitively.
    """
    value = headers.get(header)
    if value is None:
        wanted = header.lower()
        for name, candidate in headers.items():
            if name.lower() == wanted:
                value = candidate
                break
    return value is not None and value.strip().lower() == marker.lower()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def decode_output(raw: str) -> Any:
    """
    Parsed JSON if the output is standard JSON (and not null), else the raw string.

    NaN and Infinity are not JSON; output containing them is kept as text.
    """
    if not raw:
        return raw
    try:
        parsed = json.loads(raw, parse_constant=_reject_constant)
    except ValueError:
        return raw
    return raw if parsed is None else parsed


class SystemMessages(BaseModel):
    """Messages pending at forward time"""
    messages: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class JsonEnvelope(BaseModel):
    """JSON body returned to asynchronous callers"""
    current_url: str = ""
    forward_url: str = ""
    system_messages: SystemMessages = Field(default_factory=SystemMessages)
    status: int = STATUS_OK
    output: Any = ""


class ResponseShaper:
    """
    Turns forwards into JSON envelopes for asynchronous callers.

    Example:
        ```python
        shaper = ResponseShaper()
        shaper.register(hooks)
        context.is_async = shaper.detect(request.headers)
        ```
    """

    # runs before any other "action" hook so the buffer is in place
    buffer_priority = 1
    # runs after URL-rewriting "forward" hooks so the envelope reports the final URL
    intercept_priority = 900

    def __init__(self, header: str = DEFAULT_ASYNC_HEADER, marker: str = DEFAULT_ASYNC_MARKER):
        self.header = header
        self.marker = marker

    def detect(self, headers: Mapping[str, str]) -> bool:
        return is_async_client(headers, self.header, self.marker)

    def register(self, hooks: HookBus) -> None:
        hooks.register(ACTION_TOPIC, ALL, self.buffer_output, priority=self.buffer_priority)
        hooks.register(FORWARD_TOPIC, ALL, self.intercept_forward, priority=self.intercept_priority)

    def buffer_output(self, hook: Hook, result: Any) -> None:
        context: DispatchContext = hook.payload
        if context.is_async and not isinstance(context.output, BufferedWriter):
            context.output = BufferedWriter()
        return None

    def intercept_forward(self, hook: Hook, result: Any) -> Optional[ResponseSent]:
        payload = hook.payload or {}
        context: Optional[DispatchContext] = payload.get("context")
        if context is None or not context.is_async:
            return None

        forward_url = result if isinstance(result, str) else payload.get("forward_url", "")
        envelope = self.build_envelope(context, payload.get("current_url", ""), forward_url)
        logger.debug(f"Answering asynchronous request for '{context.action}' with status {envelope.status}")
        return ResponseSent(body=envelope.model_dump_json(), media_type=JSON_MEDIA_TYPE)

    def build_envelope(self, context: DispatchContext, current_url: str, forward_url: str) -> JsonEnvelope:
        """Drain the output buffer and the pending messages into an envelope."""
        raw = context.output.drain() if isinstance(context.output, BufferedWriter) else ""
        pending = context.messages.drain_all()
        errors = pending.get("errors", [])
        return JsonEnvelope(
            current_url=current_url or context.current_url,
            forward_url=forward_url,
            system_messages=SystemMessages(messages=pending.get("messages", []), errors=errors),
            status=STATUS_ERROR if errors else STATUS_OK,
            output=decode_output(raw),
        )


__all__ = [
    "DEFAULT_ASYNC_HEADER",
    "DEFAULT_ASYNC_MARKER",
    "JSON_MEDIA_TYPE",
    "STATUS_OK",
    "STATUS_ERROR",
    "SystemMessages",
    "JsonEnvelope",
    "ResponseShaper",
    "is_async_client",
    "decode_output",
]
