"""
动作路由
/action/<动作名> 统一入口：GET 或 POST 均可，令牌可放在查询参数、表单、JSON 或请求头中
"""
from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.security.session import SessionStore, attach_session_cookie, load_session
from app.services.action_service import get_action_system, get_session_store
from core.actions import ActionSystem, DispatchContext, DispatchResult, ResponseSent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["动作"])

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_inputs(request: Request) -> Dict[str, Any]:
    """合并查询参数与请求体（表单或 JSON）"""
    params: Dict[str, Any] = dict(request.query_params)
    if request.method != "POST":
        return params

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            params.update(body)
    elif content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        params.update({key: value for key, value in form.items()})
    return params


def text_input(params: Dict[str, Any], name: str) -> Optional[str]:
    """取字符串参数；JSON 请求体中的整数转为字符串，其他类型视为未提供"""
    value = params.get(name)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value if isinstance(value, str) and value else None


def to_response(result: DispatchResult) -> Response:
    """把分发结果转为 HTTP 响应"""
    if isinstance(result, ResponseSent):
        return Response(
            content=result.body,
            media_type=result.media_type,
            status_code=result.status_code,
            headers=result.headers,
        )
    return RedirectResponse(url=result.url, status_code=result.status_code)


@router.api_route("/action/{action_name:path}", methods=["GET", "POST"])
async def perform_action(
    action_name: str,
    request: Request,
    db: Session = Depends(get_db),
    system: ActionSystem = Depends(get_action_system),
    store: SessionStore = Depends(get_session_store),
):
    """执行动作"""
    params = await read_inputs(request)
    session, _ = load_session(request, store)

    context = DispatchContext(
        forwarder=text_input(params, "forward") or request.headers.get("referer", ""),
        identity=session.identity(),
        is_async=system.is_async_client(request.headers),
        messages=session.messages,
        token=text_input(params, settings.ACTION_TOKEN_FIELD) or request.headers.get(settings.ACTION_TOKEN_HEADER),
        timestamp=text_input(params, settings.ACTION_TS_FIELD) or request.headers.get(settings.ACTION_TS_HEADER),
        session_id=session.session_id,
        session_salt=session.salt,
        current_url=str(request.url),
        params=params,
        services={
            "db": db,
            "session": session,
            "session_store": store,
            "action_system": system,
        },
    )

    result = system.perform_action(action_name, context)
    response = to_response(result)
    attach_session_cookie(response, session)
    return response
