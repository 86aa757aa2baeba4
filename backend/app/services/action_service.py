"""
动作系统装配

启动时按配置构建唯一的 ActionSystem 并注册内置动作，
之后通过 app.state 交给路由使用。
"""
from typing import Optional
import logging

from fastapi import Request

from app.config import settings
from app.database import SessionLocal
from app.languages import catalog
from app.security.session import SessionStore
from app.services.secret_store import SiteSecretStore
from core.actions import ActionSystem
from core.actions.interfaces import SecretProvider

logger = logging.getLogger(__name__)


def create_action_system(secrets: Optional[SecretProvider] = None) -> ActionSystem:
    """
    按配置创建动作系统并注册内置动作

    Args:
        secrets: 站点密钥提供者，默认使用数据库中的 SiteSecretStore
    """
    from app.actions import register_builtin_actions

    system = ActionSystem(
        secrets or SiteSecretStore(SessionLocal),
        site_url=settings.SITE_URL,
        handler_base=settings.ACTION_HANDLER_BASE,
        exemptions=settings.ACTION_GATE_EXEMPTIONS,
        token_window=settings.ACTION_TOKEN_WINDOW_SECONDS,
        async_header=settings.ASYNC_CLIENT_HEADER,
        async_marker=settings.ASYNC_CLIENT_MARKER,
        reject_duplicates=settings.ACTION_REJECT_DUPLICATES,
        translate=catalog,
        token_field=settings.ACTION_TOKEN_FIELD,
        ts_field=settings.ACTION_TS_FIELD,
    )
    register_builtin_actions(system)
    return system


def get_action_system(request: Request) -> ActionSystem:
    """依赖注入：获取应用的动作系统（未初始化时创建）"""
    system = getattr(request.app.state, "action_system", None)
    if system is None:
        system = create_action_system()
        request.app.state.action_system = system
    return system


def get_session_store(request: Request) -> SessionStore:
    """依赖注入：获取应用的会话存储（未初始化时创建）"""
    store = getattr(request.app.state, "session_store", None)
    if store is None:
        store = SessionStore()
        request.app.state.session_store = store
    return store
