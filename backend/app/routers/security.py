"""
会话与令牌路由
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.schemas import SessionResponse, TokenPairResponse, UserResponse
from app.security.session import SessionStore, attach_session_cookie, load_session
from app.services.action_service import get_action_system, get_session_store
from app.services.user_service import UserService
from core.actions import ActionSystem

router = APIRouter(prefix="/security", tags=["安全"])


@router.get("/token", response_model=TokenPairResponse)
def get_action_token(
    request: Request,
    system: ActionSystem = Depends(get_action_system),
    store: SessionStore = Depends(get_session_store),
):
    """获取当前会话的动作令牌（表单需要回传这两个字段）"""
    session, _ = load_session(request, store)
    token = system.generate_token(session.session_id, session.salt)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Action tokens are unavailable"
        )

    body = TokenPairResponse(
        token=token.token,
        ts=token.timestamp,
        token_field=settings.ACTION_TOKEN_FIELD,
        ts_field=settings.ACTION_TS_FIELD,
    )
    response = JSONResponse(content=body.model_dump())
    attach_session_cookie(response, session)
    return response


@router.get("/session", response_model=SessionResponse)
def get_session_info(
    request: Request,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    """获取当前会话的登录状态"""
    session, _ = load_session(request, store)
    user = UserService(db).get_user(session.user_id) if session.is_logged_in else None

    body = SessionResponse(
        logged_in=user is not None,
        is_admin=session.is_admin if user is not None else False,
        user=UserResponse.model_validate(user) if user is not None else None,
    )
    response = JSONResponse(content=body.model_dump())
    attach_session_cookie(response, session)
    return response
