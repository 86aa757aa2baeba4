"""
core - 动作分发框架

与具体站点无关的框架层，站点代码（app/）在其上注册动作与钩子。

包含：
- actions: 动作注册表、安全令牌、授权门、分发器、钩子总线、异步 JSON 响应

使用方式:
    >>> from core.actions import ActionSystem, DispatchContext
    >>> system = ActionSystem(secret_store, site_url="http://site.example/")
    >>> system.register_action("blog/save", handler=save_post)
"""

from core.actions import (
    ActionSystem,
    ActionRegistry,
    AuthorizationGate,
    AuthorizationOutcome,
    CallerIdentity,
    DispatchContext,
    Dispatcher,
    HookBus,
    MessageQueue,
    Redirect,
    ResponseSent,
)

__version__ = "1.0.0"

__all__ = [
    "ActionSystem",
    "ActionRegistry",
    "AuthorizationGate",
    "AuthorizationOutcome",
    "CallerIdentity",
    "DispatchContext",
    "Dispatcher",
    "HookBus",
    "MessageQueue",
    "Redirect",
    "ResponseSent",
]
