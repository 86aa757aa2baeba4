"""
动作处理器公用函数
"""
from core.actions import DispatchContext


def rotate_session(context: DispatchContext) -> None:
    """
    权限变化后换发会话 ID 与 salt

    路由在响应中写入新 Cookie；本次请求的上下文同步更新，
    之后的令牌按新会话派生。
    """
    session = context.service("session")
    context.service("session_store").regenerate(session)
    context.identity = session.identity()
    context.session_id = session.session_id
    context.session_salt = session.salt
