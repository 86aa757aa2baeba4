"""
core/actions/system.py

ActionSystem - the action framework wired together.

One instance is built at startup and handed to whoever registers or performs
actions; there is no module-level registry.
"""
from typing import Any, Callable, Iterable, Mapping, Optional
import logging
import time

from core.actions.context import DispatchContext
from core.actions.dispatcher import DEFAULT_GATE_EXEMPTIONS, Dispatcher
from core.actions.gate import AuthorizationGate, AuthorizationOutcome
from core.actions.hooks import HookBus
from core.actions.interfaces import SecretProvider
from core.actions.messages import MessageCatalog, MessageQueue
from core.actions.registry import ActionHandler, ActionRegistry
from core.actions.response import DEFAULT_ASYNC_HEADER, DEFAULT_ASYNC_MARKER, ResponseShaper
from core.actions.results import DispatchResult
from core.actions.tokens import (
    DEFAULT_TOKEN_FIELD,
    DEFAULT_TS_FIELD,
    TOKEN_WINDOW_SECONDS,
    SecurityToken,
    TokenCodec,
    add_tokens_to_url,
)

logger = logging.getLogger(__name__)


class ActionSystem:
    """
    Registry, token gate, dispatcher and JSON shaper behind one object.

    Example:
        ```python
        system = ActionSystem(secret_store, site_url="http://site.example/",
                              handler_base="app.actions")
        system.register_action("login", public=True)
        system.register_action("admin/site/flush", admin_only=True)

        result = system.perform_action("login", context, forwarder="dashboard")
        ```
    """

    def __init__(
        self,
        secrets: SecretProvider,
        site_url: str = "",
        handler_base: str = "",
        exemptions: Iterable[str] = DEFAULT_GATE_EXEMPTIONS,
        token_window: int = TOKEN_WINDOW_SECONDS,
        async_header: str = DEFAULT_ASYNC_HEADER,
        async_marker: str = DEFAULT_ASYNC_MARKER,
        reject_duplicates: bool = False,
        translate: Optional[Callable[..., str]] = None,
        token_field: str = DEFAULT_TOKEN_FIELD,
        ts_field: str = DEFAULT_TS_FIELD,
        clock: Callable[[], float] = time.time,
    ):
        self.secrets = secrets
        self.translate = translate or MessageCatalog()
        self.token_field = token_field
        self.ts_field = ts_field

        self.hooks = HookBus()
        self.codec = TokenCodec(window_seconds=token_window, clock=clock)
        self.registry = ActionRegistry(handler_base=handler_base, reject_duplicates=reject_duplicates)
        self.gate = AuthorizationGate(self.codec, secrets, self.hooks, translate=self.translate)
        self.dispatcher = Dispatcher(
            self.registry,
            self.gate,
            self.hooks,
            site_url=site_url,
            exemptions=exemptions,
            translate=self.translate,
        )
        self.shaper = ResponseShaper(header=async_header, marker=async_marker)
        self.shaper.register(self.hooks)
        logger.info("ActionSystem initialized")

    # ---- registration ----

    def register_action(
        self,
        name: str,
        public: bool = False,
        handler_ref: str = "",
        admin_only: bool = False,
        handler: Optional[ActionHandler] = None,
    ) -> bool:
        return self.registry.register(
            name,
            public=public,
            handler_ref=handler_ref,
            admin_only=admin_only,
            handler=handler,
        )

    def action_exists(self, name: str) -> bool:
        return self.registry.exists(name)

    # ---- dispatch ----

    def perform_action(
        self,
        name: str,
        context: DispatchContext,
        forwarder: Optional[str] = None,
    ) -> DispatchResult:
        """
        Run an action for a request.

        Args:
            name: Action name
            context: Request state (identity, session, inputs, messages)
            forwarder: Forward location; keeps context.forwarder when None

        Returns:
            Redirect or ResponseSent
        """
        context.action = name
        if forwarder is not None:
            context.forwarder = forwarder
        return self.dispatcher.dispatch(context)

    def is_async_client(self, headers: Mapping[str, str]) -> bool:
        return self.shaper.detect(headers)

    # ---- tokens ----

    def generate_token(
        self,
        session_id: Optional[str],
        session_salt: str = "",
        timestamp: Optional[int] = None,
    ) -> Optional[SecurityToken]:
        """Token pair for a session, or None without a secret or session."""
        return self.codec.generate(self.gate.current_secret(), session_id, session_salt, timestamp)

    def validate_token(
        self,
        token: Optional[str],
        timestamp: Any,
        session_id: Optional[str],
        session_salt: str = "",
        messages: Optional[MessageQueue] = None,
        visible: bool = True,
    ) -> AuthorizationOutcome:
        return self.gate.validate(token, timestamp, session_id, session_salt, messages=messages, visible=visible)

    def add_tokens_to_url(self, url: str, session_id: Optional[str], session_salt: str = "") -> str:
        """URL with a fresh token pair in its query string; unchanged if no token can be made."""
        token = self.generate_token(session_id, session_salt)
        if token is None:
            return url
        return add_tokens_to_url(url, token, self.token_field, self.ts_field)


__all__ = ["ActionSystem"]
