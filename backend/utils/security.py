from fastapi import Request, Depends
from typing import Optional, Dict, Any

from backend.utils.errors import Unauthorized

COOKIE_NAME = "sb_access"

def extract_token(request: Request) -> Optional[str]:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)
    return token or None

def get_current_user(request: Request) -> Dict[str, Any]:
    token = extract_token(request)
    if not token:
        raise Unauthorized()

    try:
        # Délégué au service Auth
        from backend.auth.service import get_user_from_token as _svc_get_user_from_token
        user = _svc_get_user_from_token(token)
    except Unauthorized:
        raise
    except Exception as e:
        raise Unauthorized("Session expirée, veuillez vous connecter") from e
    if not user.get("id"):
        raise Unauthorized("Session expirée, veuillez vous connecter")
    return user

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user
