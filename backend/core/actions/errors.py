"""
core/actions/errors.py

Exceptions raised by the action framework.

Request-level failures (bad token, unknown action, missing login) are never
raised: they become user messages plus a forward. These exceptions cover
configuration problems and collaborator failures only.
"""


class ActionError(Exception):
    """Base class for action framework errors"""


class DuplicateActionError(ActionError):
    """Raised by a strict registry when an action name is registered twice"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Action '{name}' is already registered")


class HandlerUnavailable(ActionError):
    """Raised when a handler reference cannot be turned into a callable"""

    def __init__(self, handler_ref: str, reason: str = ""):
        self.handler_ref = handler_ref
        self.reason = reason
        message = f"Handler '{handler_ref}' is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SecretUnavailable(ActionError):
    """Raised by a secret provider that cannot load or create the site secret"""


__all__ = [
    "ActionError",
    "DuplicateActionError",
    "HandlerUnavailable",
    "SecretUnavailable",
]
