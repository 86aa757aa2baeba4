"""
app/actions

内置动作处理器

动作名与模块路径一一对应：未显式指定处理器时，
动作 "security/refreshtoken" 由 app.actions.security.refreshtoken.handle 处理。

每个处理器签名为 handle(context: DispatchContext) -> None，
通过 context.services 取得 db、session、action_system。
"""
from core.actions import ActionSystem

import logging

logger = logging.getLogger(__name__)


def register_builtin_actions(system: ActionSystem) -> None:
    """注册站点内置动作"""
    system.register_action("login", public=True)
    system.register_action("logout")
    system.register_action("register", public=True)
    system.register_action("security/refreshtoken", public=True)
    system.register_action("admin/site/regenerate_secret", admin_only=True)

    logger.info(f"Built-in actions registered ({len(system.registry)} actions)")


__all__ = [
    "register_builtin_actions",
]
