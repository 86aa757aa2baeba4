"""
core/actions/dispatcher.py

Action dispatch pipeline.

    dispatch(context)
      1. normalize the action name
      2. token gate (unless the action is exempt)   -> forward to site root
      3. sanitize the forwarder
      4. lookup + access check                      -> error message, forward
      5. "action" hook chain (may veto silently)
      6. resolve and call the handler               -> "not found" on failure
      7. "forward" hook chain, then redirect

Every path ends in step 7, so the forward hooks (and with them the JSON
envelope for asynchronous callers) see every outcome. Exceptions raised by a
handler are not caught.
"""
from typing import Callable, Iterable, Optional
import logging

from core.actions.context import DispatchContext
from core.actions.errors import HandlerUnavailable
from core.actions.gate import (
    FAILURE_MESSAGES,
    ActionFailure,
    AuthorizationGate,
    AuthorizationOutcome,
)
from core.actions.hooks import HookBus
from core.actions.messages import MessageCatalog
from core.actions.registry import ActionRegistry, normalize_action_name
from core.actions.results import DispatchResult, Redirect, ResponseSent

logger = logging.getLogger(__name__)

ACTION_TOPIC = "action"
FORWARD_TOPIC = "forward"
FORWARD_REASON = "system"

# Actions reachable without a token
DEFAULT_GATE_EXEMPTIONS = (
    "admin/plugins/disable",
    "logout",
    "login",
    "file/download",
)


def sanitize_forwarder(forwarder: Optional[str], site_url: str = "") -> str:
    """
    Clean a caller-supplied forward location.

    Removes the site URL, "http://" and "@" characters, then one leading "/".

    Example:
        >>> sanitize_forwarder("http://site.example/@path/", "http://site.example/")
        'path/'
    """
    if not isinstance(forwarder, str):
        forwarder = ""
    if site_url:
        forwarder = forwarder.replace(site_url, "")
    forwarder = forwarder.replace("http://", "")
    forwarder = forwarder.replace("@", "")
    if forwarder.startswith("/"):
        forwarder = forwarder[1:]
    return forwarder


class Dispatcher:
    """
    Runs one action request from gate to forward.

    Example:
        ```python
        dispatcher = Dispatcher(registry, gate, hooks, site_url="http://site.example/")
        result = dispatcher.dispatch(DispatchContext(action="blog/save", ...))
        # Redirect(url=...) or ResponseSent(...)
        ```
    """

    def __init__(
        self,
        registry: ActionRegistry,
        gate: AuthorizationGate,
        hooks: HookBus,
        site_url: str = "",
        exemptions: Iterable[str] = DEFAULT_GATE_EXEMPTIONS,
        translate: Optional[Callable[..., str]] = None,
    ):
        self.registry = registry
        self.gate = gate
        self.hooks = hooks
        self.site_url = site_url if not site_url or site_url.endswith("/") else f"{site_url}/"
        self.exemptions = frozenset(normalize_action_name(name) for name in exemptions)
        self.translate = translate or MessageCatalog()

    def is_exempt(self, name: str) -> bool:
        return normalize_action_name(name) in self.exemptions

    def dispatch(self, context: DispatchContext) -> DispatchResult:
        """
        Run the pipeline for context.action.

        Returns:
            Redirect, or ResponseSent if a hook produced the response
        """
        name = normalize_action_name(context.action)
        context.action = name

        if not self.is_exempt(name):
            outcome = self.gate.check(context)
            if outcome is not AuthorizationOutcome.VALID:
                logger.info(f"Action '{name}' stopped at the gate: {outcome.value}")
                return self.forward(context, "")

        context.forwarder = sanitize_forwarder(context.forwarder, self.site_url)

        sent = self._run(context)
        if sent is not None:
            return sent

        return self.forward(context, context.forwarder)

    def _run(self, context: DispatchContext) -> Optional[ResponseSent]:
        name = context.action
        descriptor = self.registry.lookup(name)
        if descriptor is None:
            self._fail(context, ActionFailure.ACTION_UNDEFINED, name)
            return None

        failure = self.gate.check_permissions(descriptor, context.identity)
        if failure is not None:
            self._fail(context, failure)
            return None

        proceed = self.hooks.trigger(
            ACTION_TOPIC,
            name,
            payload=context,
            default=True,
            halt_on_false=True,
        )
        if isinstance(proceed, ResponseSent):
            return proceed
        if not proceed:
            # the vetoing hook reports its own reason
            logger.info(f"Action '{name}' vetoed by an action hook")
            return None

        try:
            handler = self.registry.resolve_handler(descriptor)
        except HandlerUnavailable as e:
            logger.error(f"Action '{name}' cannot be started: {e}")
            self._fail(context, ActionFailure.ACTION_NOT_FOUND, name)
            return None

        logger.info(f"Dispatching action: {name}")
        handler(context)
        return None

    def _fail(self, context: DispatchContext, failure: ActionFailure, *args) -> None:
        logger.warning(f"Action '{context.action}' failed: {failure.value}")
        context.messages.add_error(self.translate(FAILURE_MESSAGES[failure], *args))

    def absolute_url(self, location: str) -> str:
        """
        Forward target for a location.

        URLs under the site are kept, everything else is taken relative to the
        site root.
        """
        if self.site_url and location.startswith(self.site_url):
            return location
        return f"{self.site_url}{location.lstrip('/')}" if self.site_url else f"/{location.lstrip('/')}"

    def forward(self, context: DispatchContext, location: str = "") -> DispatchResult:
        """
        Trigger the "forward" hooks and build the redirect.

        A hook may return a replacement URL, or ResponseSent to answer the
        request itself.
        """
        forward_url = self.absolute_url(location)
        result = self.hooks.trigger(
            FORWARD_TOPIC,
            FORWARD_REASON,
            payload={
                "current_url": context.current_url,
                "forward_url": forward_url,
                "context": context,
            },
            default=forward_url,
        )
        if isinstance(result, ResponseSent):
            return result
        if isinstance(result, str) and result:
            forward_url = result
        return Redirect(url=forward_url)


__all__ = [
    "ACTION_TOPIC",
    "FORWARD_TOPIC",
    "FORWARD_REASON",
    "DEFAULT_GATE_EXEMPTIONS",
    "sanitize_forwarder",
    "Dispatcher",
]
