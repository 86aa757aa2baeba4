"""
core/actions/gate.py

Authorization gate for actions.

Two layers run before a handler:
1. Token gate (AuthorizationGate.validate): token and timestamp present,
   token matches a fresh derivation, timestamp inside the window, and no
   "action_token:permissions_check" hook vetoes.
2. Access check (AuthorizationGate.check_permissions): admin-only actions need
   an admin, non-public actions need a logged-in caller. Admin is checked
   first so its message wins over "logged out".

Each failure registers exactly one error message when visible=True; with
visible=False the gate has no side effects and can be used to peek.
"""
from enum import Enum
from typing import Any, Callable, Dict, Optional
import logging

from core.actions.context import CallerIdentity, DispatchContext
from core.actions.errors import SecretUnavailable
from core.actions.hooks import HookBus
from core.actions.interfaces import SecretProvider
from core.actions.messages import MessageCatalog, MessageQueue
from core.actions.registry import ActionDescriptor
from core.actions.tokens import TokenCodec

logger = logging.getLogger(__name__)

PERMISSIONS_CHECK_TOPIC = "action_token"
PERMISSIONS_CHECK_SUBTYPE = "permissions_check"


class AuthorizationOutcome(str, Enum):
    """Result of the token gate"""

    VALID = "valid"
    MISSING_FIELDS = "missing_fields"
    TOKEN_INVALID = "token_invalid"
    TIME_WINDOW_INVALID = "time_window_invalid"
    VETOED_BY_HOOK = "vetoed_by_hook"


class ActionFailure(str, Enum):
    """Dispatch-level failures"""

    ACTION_UNDEFINED = "action_undefined"
    ACTION_UNAUTHORIZED = "action_unauthorized"
    ACTION_LOGGED_OUT = "action_logged_out"
    ACTION_NOT_FOUND = "action_not_found"


OUTCOME_MESSAGES: Dict[AuthorizationOutcome, str] = {
    AuthorizationOutcome.MISSING_FIELDS: "actiongate:missing_fields",
    AuthorizationOutcome.TOKEN_INVALID: "actiongate:token_invalid",
    AuthorizationOutcome.TIME_WINDOW_INVALID: "actiongate:time_error",
    AuthorizationOutcome.VETOED_BY_HOOK: "actiongate:vetoed",
}

FAILURE_MESSAGES: Dict[ActionFailure, str] = {
    ActionFailure.ACTION_UNDEFINED: "action:undefined",
    ActionFailure.ACTION_UNAUTHORIZED: "action:unauthorized",
    ActionFailure.ACTION_LOGGED_OUT: "action:logged_out",
    ActionFailure.ACTION_NOT_FOUND: "action:not_found",
}


class AuthorizationGate:
    """
    Decides whether a request may proceed to an action.

    Example:
        ```python
        gate = AuthorizationGate(TokenCodec(), secret_store, hooks)
        outcome = gate.validate(token, ts, session_id, salt, messages=queue)
        if outcome is AuthorizationOutcome.VALID:
            ...
        ```
    """

    def __init__(
        self,
        codec: TokenCodec,
        secrets: SecretProvider,
        hooks: HookBus,
        translate: Optional[Callable[..., str]] = None,
    ):
        self.codec = codec
        self.secrets = secrets
        self.hooks = hooks
        self.translate = translate or MessageCatalog()

    def current_secret(self) -> Optional[str]:
        """Site secret, or None if the provider cannot supply one."""
        try:
            return self.secrets.get() or None
        except SecretUnavailable as e:
            logger.error(f"Site secret unavailable, denying gated actions: {e}")
            return None

    def validate(
        self,
        token: Optional[str],
        timestamp: Any,
        session_id: Optional[str],
        session_salt: str = "",
        messages: Optional[MessageQueue] = None,
        visible: bool = True,
    ) -> AuthorizationOutcome:
        """
        Run the token gate.

        Args:
            token: Submitted token
            timestamp: Submitted timestamp (int or numeric string)
            session_id: Caller session id
            session_salt: Caller session salt
            messages: Queue receiving the error message
            visible: Register an error message on failure

        Returns:
            AuthorizationOutcome
        """
        outcome = self._evaluate(token, timestamp, session_id, session_salt)
        if outcome is not AuthorizationOutcome.VALID:
            logger.warning(f"Action token rejected: {outcome.value}")
            if visible and messages is not None:
                messages.add_error(self.translate(OUTCOME_MESSAGES[outcome]))
        return outcome

    def _evaluate(
        self,
        token: Optional[str],
        timestamp: Any,
        session_id: Optional[str],
        session_salt: str,
    ) -> AuthorizationOutcome:
        if not token or timestamp in (None, "") or not session_id:
            return AuthorizationOutcome.MISSING_FIELDS

        secret = self.current_secret()
        if secret is None:
            return AuthorizationOutcome.MISSING_FIELDS

        try:
            ts = int(timestamp)
        except (TypeError, ValueError):
            return AuthorizationOutcome.TOKEN_INVALID

        if not self.codec.matches(token, ts, secret, session_id, session_salt):
            return AuthorizationOutcome.TOKEN_INVALID

        if not self.codec.within_window(ts):
            return AuthorizationOutcome.TIME_WINDOW_INVALID

        allowed = self.hooks.trigger(
            PERMISSIONS_CHECK_TOPIC,
            PERMISSIONS_CHECK_SUBTYPE,
            payload={"token": token, "time": ts},
            default=True,
            halt_on_false=True,
        )
        if not allowed:
            return AuthorizationOutcome.VETOED_BY_HOOK

        return AuthorizationOutcome.VALID

    def check(self, context: DispatchContext, visible: bool = True) -> AuthorizationOutcome:
        """Run the token gate against a dispatch context."""
        return self.validate(
            context.token,
            context.timestamp,
            context.session_id,
            context.session_salt,
            messages=context.messages,
            visible=visible,
        )

    def check_permissions(
        self,
        descriptor: ActionDescriptor,
        identity: CallerIdentity,
    ) -> Optional[ActionFailure]:
        """
        Access check for a registered action.

        Returns:
            None if allowed, else ACTION_UNAUTHORIZED or ACTION_LOGGED_OUT
        """
        if descriptor.admin_only and not identity.is_admin:
            return ActionFailure.ACTION_UNAUTHORIZED
        if not descriptor.public and not identity.is_logged_in:
            return ActionFailure.ACTION_LOGGED_OUT
        return None


__all__ = [
    "PERMISSIONS_CHECK_TOPIC",
    "PERMISSIONS_CHECK_SUBTYPE",
    "AuthorizationOutcome",
    "ActionFailure",
    "OUTCOME_MESSAGES",
    "FAILURE_MESSAGES",
    "AuthorizationGate",
]
