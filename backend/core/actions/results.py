"""
core/actions/results.py

Terminal results of a dispatch cycle.

A dispatch ends either with a redirect or with a response that a hook has
already produced. The web layer turns the result into a real response; when a
hook returns ResponseSent every remaining hook and the redirect are skipped.
"""
from dataclasses import dataclass, field
from typing import Dict, Union


@dataclass(frozen=True)
class Redirect:
    """Send the caller to another URL"""

    url: str
    status_code: int = 302


@dataclass(frozen=True)
class ResponseSent:
    """A complete response produced inside the pipeline; stop processing"""

    body: str
    media_type: str = "application/json"
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


DispatchResult = Union[Redirect, ResponseSent]


__all__ = [
    "Redirect",
    "ResponseSent",
    "DispatchResult",
]
