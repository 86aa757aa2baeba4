"""
core/actions/registry.py

Action registration.

Key components:
- ActionDescriptor: What the dispatcher needs to know about one action
- HandlerResolver: Turns a handler reference into a callable
- ActionRegistry: Name -> descriptor mapping shared by the whole process
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import importlib
import logging
import threading

from core.actions.errors import DuplicateActionError, HandlerUnavailable

logger = logging.getLogger(__name__)

# Handler signature: handler(context: DispatchContext) -> None
ActionHandler = Callable[..., Any]


def normalize_action_name(name: Optional[str]) -> str:
    """Action names are stored and looked up without trailing slashes."""
    return (name or "").rstrip("/")


@dataclass(frozen=True)
class ActionDescriptor:
    """
    Registration record of an action.

    Attributes:
        name: Unique action name, trailing slashes stripped (e.g. "user/save")
        handler_ref: Dotted reference to the handler, "package.module" (calls
            its ``handle``) or "package.module:attr"
        public: Whether logged-out callers may run the action
        admin_only: Whether only admins may run the action
        handler: Callable registered directly; takes precedence over handler_ref
    """

    name: str
    handler_ref: str
    public: bool = False
    admin_only: bool = False
    handler: Optional[ActionHandler] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "handler_ref": self.handler_ref,
            "public": self.public,
            "admin_only": self.admin_only,
        }


class HandlerResolver:
    """Resolves "package.module[:attr]" references to callables."""

    default_attr = "handle"

    def split(self, handler_ref: str) -> Tuple[str, str]:
        module_name, _, attr = handler_ref.partition(":")
        return module_name, attr or self.default_attr

    def resolve(self, handler_ref: str) -> ActionHandler:
        """
        Import the referenced module and return the handler callable.

        Raises:
            HandlerUnavailable: If the module cannot be imported or exposes no
                callable under the expected name
        """
        module_name, attr = self.split(handler_ref)
        try:
            module = importlib.import_module(module_name)
        except Exception as e:
            # any failure while importing the handler module leaves the action unusable
            raise HandlerUnavailable(handler_ref, f"{type(e).__name__}: {e}") from e

        handler = getattr(module, attr, None)
        if not callable(handler):
            raise HandlerUnavailable(handler_ref, f"no callable '{attr}' in {module_name}")
        return handler


class ActionRegistry:
    """
    Process-wide registry of actions.

    Populated at startup, read on every request. Writes replace a whole
    descriptor under a lock, so readers never see a half-registered action.

    Example:
        ```python
        registry = ActionRegistry(handler_base="app.actions")
        registry.register("blog/save")              # -> app.actions.blog.save
        registry.register("login", public=True)
        registry.register("admin/site/flush", admin_only=True, handler=flush)

        registry.lookup("blog/save/").handler_ref   # "app.actions.blog.save"
        ```
    """

    def __init__(
        self,
        handler_base: str = "",
        reject_duplicates: bool = False,
        resolver: Optional[HandlerResolver] = None,
    ):
        """
        Args:
            handler_base: Package prefix for synthesized handler references
            reject_duplicates: Raise instead of replacing on re-registration
            resolver: Handler resolver (defaults to HandlerResolver)
        """
        self.handler_base = handler_base.rstrip(".")
        self.reject_duplicates = reject_duplicates
        self.resolver = resolver or HandlerResolver()
        self._actions: Dict[str, ActionDescriptor] = {}
        self._lock = threading.RLock()

    def default_handler_ref(self, name: str) -> str:
        """Handler reference used when none is given: <base>.<name with / as .>"""
        module_path = normalize_action_name(name).replace("/", ".")
        if self.handler_base:
            return f"{self.handler_base}.{module_path}"
        return module_path

    def register(
        self,
        name: str,
        public: bool = False,
        handler_ref: str = "",
        admin_only: bool = False,
        handler: Optional[ActionHandler] = None,
    ) -> bool:
        """
        Register (or replace) an action.

        Args:
            name: Action name; trailing slashes are stripped
            public: Whether logged-out callers may run it
            handler_ref: Handler reference; synthesized from the name if empty
            admin_only: Whether only admins may run it
            handler: Optional callable registered directly

        Returns:
            True

        Raises:
            DuplicateActionError: If the registry rejects duplicates and the
                name is taken
        """
        name = normalize_action_name(name)
        if not handler_ref:
            if handler is not None:
                handler_ref = f"{getattr(handler, '__module__', '')}:{getattr(handler, '__qualname__', name)}"
            else:
                handler_ref = self.default_handler_ref(name)

        descriptor = ActionDescriptor(
            name=name,
            handler_ref=handler_ref,
            public=bool(public),
            admin_only=bool(admin_only),
            handler=handler,
        )

        with self._lock:
            if name in self._actions:
                if self.reject_duplicates:
                    raise DuplicateActionError(name)
                logger.warning(f"Action '{name}' re-registered, replacing {self._actions[name].handler_ref}")
            self._actions[name] = descriptor

        logger.info(f"Registered action: {name} (public={descriptor.public}, admin_only={descriptor.admin_only})")
        return True

    def unregister(self, name: str) -> bool:
        """Remove an action. Returns False if it was not registered."""
        name = normalize_action_name(name)
        with self._lock:
            removed = self._actions.pop(name, None)
        if removed is not None:
            logger.info(f"Unregistered action: {name}")
        return removed is not None

    def lookup(self, name: str) -> Optional[ActionDescriptor]:
        with self._lock:
            return self._actions.get(normalize_action_name(name))

    def resolve_handler(self, descriptor: ActionDescriptor) -> ActionHandler:
        """
        Callable for a descriptor.

        Raises:
            HandlerUnavailable: If the reference cannot be resolved
        """
        if descriptor.handler is not None:
            return descriptor.handler
        return self.resolver.resolve(descriptor.handler_ref)

    def exists(self, name: str) -> bool:
        """True only if the action is registered and its handler resolves."""
        descriptor = self.lookup(name)
        if descriptor is None:
            return False
        try:
            self.resolve_handler(descriptor)
        except HandlerUnavailable as e:
            logger.debug(f"Action '{descriptor.name}' registered but unusable: {e}")
            return False
        return True

    def list_actions(self) -> List[ActionDescriptor]:
        with self._lock:
            return list(self._actions.values())

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._actions)


__all__ = [
    "ActionHandler",
    "ActionDescriptor",
    "HandlerResolver",
    "ActionRegistry",
    "normalize_action_name",
]
