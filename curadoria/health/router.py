from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from curadoria.health.service import health_supabase_info
from curadoria.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    return {"ok": True, "rate_limit": rate_limit_health_info(request)}

@router.get("/supabase")
def health_supabase():
    info = health_supabase_info()
    return JSONResponse(info, status_code=200 if info["connect_ok"] else 503)
