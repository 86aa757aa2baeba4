"""
动作: register
创建账号并直接登录
"""
import logging

from app.actions.support import rotate_session
from app.languages import echo
from app.services.user_service import UserService
from core.actions import DispatchContext

logger = logging.getLogger(__name__)


def handle(context: DispatchContext) -> None:
    service = UserService(context.service("db"))
    try:
        user = service.create_user(
            username=context.get_input("username", ""),
            password=context.get_input("password", ""),
            name=context.get_input("name", ""),
        )
    except ValueError as e:
        context.messages.add_error(echo("register:error", str(e)))
        return

    session = context.service("session")
    session.login(user.id, is_admin=user.is_admin)
    rotate_session(context)
    context.messages.add_message(echo("register:ok", user.username))
