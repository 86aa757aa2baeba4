# Security module
from app.security.auth import (
    get_password_hash, verify_password,
    create_session_token, decode_session_token
)
from app.security.session import (
    SessionState, SessionStore, load_session, attach_session_cookie
)

__all__ = [
    'get_password_hash', 'verify_password',
    'create_session_token', 'decode_session_token',
    'SessionState', 'SessionStore', 'load_session', 'attach_session_cookie'
]
