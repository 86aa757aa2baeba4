"""
core/actions - 动作分发框架

包含：
- registry: 动作注册表
- tokens: 安全令牌编解码
- gate: 令牌校验与登录/管理员检查
- dispatcher: 分发管线
- response: 异步请求的 JSON 信封
- system: 以上组件的组装

使用方式:
    >>> from core.actions import ActionSystem, DispatchContext
    >>> system = ActionSystem(secret_store, site_url="http://site.example/")
    >>> system.register_action("login", public=True, handler=do_login)
    >>> result = system.perform_action("login", DispatchContext(session_id="..."))
"""
from core.actions.context import (
    BufferedWriter,
    CallerIdentity,
    DispatchContext,
    StreamWriter,
)
from core.actions.dispatcher import (
    ACTION_TOPIC,
    DEFAULT_GATE_EXEMPTIONS,
    FORWARD_TOPIC,
    Dispatcher,
    sanitize_forwarder,
)
from core.actions.errors import (
    ActionError,
    DuplicateActionError,
    HandlerUnavailable,
    SecretUnavailable,
)
from core.actions.gate import (
    PERMISSIONS_CHECK_SUBTYPE,
    PERMISSIONS_CHECK_TOPIC,
    ActionFailure,
    AuthorizationGate,
    AuthorizationOutcome,
)
from core.actions.hooks import ALL, Hook, HookBus
from core.actions.messages import ERROR, MESSAGE, MessageCatalog, MessageQueue
from core.actions.registry import (
    ActionDescriptor,
    ActionRegistry,
    HandlerResolver,
    normalize_action_name,
)
from core.actions.response import JsonEnvelope, ResponseShaper, is_async_client
from core.actions.results import DispatchResult, Redirect, ResponseSent
from core.actions.system import ActionSystem
from core.actions.tokens import SecurityToken, TokenCodec, add_tokens_to_url, derive_token

__all__ = [
    # context
    "BufferedWriter",
    "CallerIdentity",
    "DispatchContext",
    "StreamWriter",
    # dispatcher
    "ACTION_TOPIC",
    "FORWARD_TOPIC",
    "DEFAULT_GATE_EXEMPTIONS",
    "Dispatcher",
    "sanitize_forwarder",
    # errors
    "ActionError",
    "DuplicateActionError",
    "HandlerUnavailable",
    "SecretUnavailable",
    # gate
    "PERMISSIONS_CHECK_TOPIC",
    "PERMISSIONS_CHECK_SUBTYPE",
    "ActionFailure",
    "AuthorizationGate",
    "AuthorizationOutcome",
    # hooks
    "ALL",
    "Hook",
    "HookBus",
    # messages
    "MESSAGE",
    "ERROR",
    "MessageCatalog",
    "MessageQueue",
    # registry
    "ActionDescriptor",
    "ActionRegistry",
    "HandlerResolver",
    "normalize_action_name",
    # response
    "JsonEnvelope",
    "ResponseShaper",
    "is_async_client",
    # results
    "DispatchResult",
    "Redirect",
    "ResponseSent",
    # system
    "ActionSystem",
    # tokens
    "SecurityToken",
    "TokenCodec",
    "add_tokens_to_url",
    "derive_token",
]
