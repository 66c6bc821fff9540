"""
AJK CRM - Routes Auth
Admin login / logout backed by a session cookie.
Sessions live in the "sessions" collection with an expiry.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from config import Settings, generate_token, now_iso
from dependencies import get_db, get_settings
from models.auth import AdminLogin, SessionInfo
from services.activity_logger import log_activity

logger = logging.getLogger("auth")

router = APIRouter(prefix="/auth", tags=["Auth"])

SESSION_COOKIE = "session"
SESSION_TTL = timedelta(days=1)


# ==================== HELPERS ====================

def check_admin_credentials(settings: Settings, username: str, password: str) -> bool:
    """Username is case-insensitive, password is compared in constant time"""
    if not username or not password:
        return False
    user_ok = username.strip().lower() == settings.admin_user.lower()
    pass_ok = secrets.compare_digest(password.encode(), settings.admin_pass.encode())
    return user_ok and pass_ok


async def find_session(request: Request):
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    db = request.app.state.db
    return await db.sessions.find_one(
        {"token": token, "expires_at": {"$gt": now_iso()}},
        {"_id": 0}
    )


async def get_current_session(request: Request) -> dict:
    """API guard: 401 JSON when there is no live session"""
    session = await find_session(request)
    if not session:
        raise HTTPException(status_code=401, detail="Unauthorized. Please log in.")
    return session


def set_session_cookie(response: Response, token: str, settings: Settings):
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=int(SESSION_TTL.total_seconds()),
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
    )


# ==================== LOGIN / LOGOUT ====================

@router.post("/login")
async def login(
    data: AdminLogin,
    response: Response,
    settings: Settings = Depends(get_settings),
    db=Depends(get_db),
):
    """Admin login; sets the session cookie"""
    if not check_admin_credentials(settings, data.username, data.password):
        logger.warning(f"[LOGIN_FAILED] username={data.username}")
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token = generate_token()
    expires_at = (datetime.now(timezone.utc) + SESSION_TTL).isoformat()

    await db.sessions.insert_one({
        "token": token,
        "username": settings.admin_user,
        "created_at": now_iso(),
        "expires_at": expires_at
    })
    await log_activity(db, "login", user=settings.admin_user)

    set_session_cookie(response, token, settings)
    return {"success": True, "expires_at": expires_at}


@router.post("/logout")
async def logout(request: Request, response: Response, db=Depends(get_db)):
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        await db.sessions.delete_one({"token": token})
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


@router.get("/session", response_model=SessionInfo)
async def get_session(session: dict = Depends(get_current_session)):
    return SessionInfo(
        username=session.get("username", ""),
        expires_at=session.get("expires_at", ""),
    )
