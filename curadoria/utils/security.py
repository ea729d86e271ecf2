from fastapi import Request, HTTPException, Depends
from typing import Optional
import hmac

from curadoria import config
from curadoria.infra import identity

ADMIN_KEY_HEADER = "X-Admin-Key"

def get_bearer_token(request: Request) -> Optional[str]:
    """Token 'Authorization: Bearer <token>' (insensible à la casse du schéma), ou None."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        return token or None
    return None

def get_current_user_id(request: Request) -> str:
    token = get_bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")
    try:
        user_id = identity.resolve_user_id(token)
    except identity.IdentityError:
        raise HTTPException(status_code=503, detail="Service d'authentification indisponible")
    if not user_id:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    return user_id

def require_user(user_id: str = Depends(get_current_user_id)) -> str:
    return user_id

def require_admin_key(request: Request) -> None:
    """Octroi manuel: en-tête X-Admin-Key comparé à ADMIN_GRANT_KEY (désactivé si la clé est vide)."""
    provided = (request.headers.get(ADMIN_KEY_HEADER) or "").strip()
    expected = config.ADMIN_GRANT_KEY
    if not expected or not provided or not hmac.compare_digest(provided, expected):
        raise HTTPException(status_code=401, detail="unauthorized")
