"""
Authentication routes, JSON flavour.

For a separate frontend (React/Vite) that drives the login itself: it asks
for the Kakao URL, the callback answers with JSON, and the session cookie is
sent with credentials on later requests.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from kakao_login.config import settings
from kakao_login.dependencies.auth import (
    SESSION_KEY,
    end_session,
    get_current_session,
    get_orchestrator,
    get_session_id,
)
from kakao_login.models.profile import SessionRecord
from kakao_login.services.login_orchestrator import LoginOrchestrator

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.get("/kakao")
async def kakao_login_url(orchestrator: LoginOrchestrator = Depends(get_orchestrator)):
    """Return the Kakao consent URL for the frontend to redirect to."""
    return {
        "success": True,
        "authUrl": orchestrator.begin_login(),
        "message": "Redirect the browser to authUrl to continue with Kakao.",
    }


@router.get("/kakao/callback")
async def kakao_callback(
    request: Request,
    orchestrator: LoginOrchestrator = Depends(get_orchestrator)
):
    """
    Handle the Kakao redirect.

    This endpoint:
    1. Rejects callbacks carrying `error` or lacking `code`
    2. Exchanges the code for an access token
    3. Fetches the Kakao profile
    4. Establishes the server-side session
    5. Upserts the user row (failure does not fail the login)
    """
    result = await orchestrator.handle_callback(
        request.query_params,
        previous_session_id=get_session_id(request),
    )
    include_details = not settings.is_production

    if not result.success:
        return JSONResponse(
            status_code=result.error.status_code,
            content=result.to_dict(include_details=include_details),
        )

    request.session[SESSION_KEY] = result.session_id
    request.state.user_id = result.profile.identity
    return result.to_dict(include_details=include_details)


@router.get("/user")
async def current_user(record: SessionRecord = Depends(get_current_session)):
    """Current user's profile. 401 when not logged in."""
    return {
        "success": True,
        "authenticated": True,
        "user": record.public_dict(),
    }


@router.post("/logout")
async def logout(
    request: Request,
    orchestrator: LoginOrchestrator = Depends(get_orchestrator)
):
    """Log out at Kakao (best-effort) and destroy the local session."""
    result = await end_session(request, orchestrator)
    return result.to_dict(include_details=not settings.is_production)
