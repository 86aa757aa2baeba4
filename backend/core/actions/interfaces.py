"""
core/actions/interfaces.py

Collaborators the action framework consumes but does not implement.
"""
from typing import Protocol


class SecretProvider(Protocol):
    """Site secret source"""

    def get(self) -> str:
        """Current secret; created on first use. May raise SecretUnavailable."""
        ...

    def init(self) -> str:
        """Create (or replace) and persist the secret."""
        ...


class Translator(Protocol):
    """Message key -> user-visible text"""

    def __call__(self, key: str, *args) -> str:
        ...


__all__ = [
    "SecretProvider",
    "Translator",
]
