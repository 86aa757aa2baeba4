"""
动作: admin/site/regenerate_secret
轮换站点密钥，所有已签发的令牌随之失效（仅管理员）
"""
import logging

from app.languages import echo
from core.actions import DispatchContext

logger = logging.getLogger(__name__)


def handle(context: DispatchContext) -> None:
    system = context.service("action_system")
    system.secrets.init()
    context.messages.add_message(echo("admin:site:secret_regenerated"))
    logger.warning(f"Site secret regenerated by user {context.identity.user_id}")
