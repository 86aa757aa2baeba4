"""
动作: login
用户名密码登录（公开动作，免令牌）
"""
import logging

from app.actions.support import rotate_session
from app.languages import echo
from app.services.user_service import UserService
from core.actions import DispatchContext

logger = logging.getLogger(__name__)


def handle(context: DispatchContext) -> None:
    username = context.get_input("username")
    password = context.get_input("password")
    if not username or not password:
        context.messages.add_error(echo("login:missing"))
        return

    service = UserService(context.service("db"))
    try:
        user = service.authenticate(username, password)
    except ValueError as e:
        context.messages.add_error(str(e))
        return

    if user is None:
        logger.info(f"Failed login for {username}")
        context.messages.add_error(echo("login:error"))
        return

    session = context.service("session")
    session.login(user.id, is_admin=user.is_admin)
    rotate_session(context)
    context.messages.add_message(echo("login:ok"))
    logger.info(f"User {user.username} logged in")
