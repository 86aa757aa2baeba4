"""
动作: security/refreshtoken
为长时间打开的页面换发新令牌；令牌以 JSON 写入输出
"""
import json

from core.actions import DispatchContext


def handle(context: DispatchContext) -> None:
    system = context.service("action_system")
    token = system.generate_token(context.session_id, context.session_salt)
    if token is None:
        return
    context.output.write(json.dumps({
        system.token_field: token.token,
        system.ts_field: token.timestamp,
    }))
