from typing import Dict, Any
import logging

from backend.utils.errors import Unauthorized
from .repository import get_user_from_access_token as _repo_get_user_from_token

logger = logging.getLogger(__name__)

# --- Intégration sécurité ---

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise user issu de supabase.auth.get_user(access_token):
    - Retourne {id, email, metadata, token}
    - Unauthorized si le jeton est rejeté ou sans utilisateur
    """
    try:
        raw = _repo_get_user_from_token(access_token)
    except Exception as e:
        logger.info("auth.get_user_from_token rejected: %s", e)
        raise Unauthorized("Session expirée, veuillez vous connecter") from e
    uid = raw.get("id")
    if not uid:
        raise Unauthorized("Session expirée, veuillez vous connecter")
    return {
        "id": str(uid),
        "email": raw.get("email"),
        "metadata": raw.get("user_metadata") or {},
        "token": access_token,
    }
