"""
动作: logout
"""
from app.actions.support import rotate_session
from app.languages import echo
from core.actions import DispatchContext


def handle(context: DispatchContext) -> None:
    session = context.service("session")
    session.logout()
    rotate_session(context)
    context.messages.add_message(echo("logout:ok"))
