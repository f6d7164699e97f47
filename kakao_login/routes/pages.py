"""
Authentication routes, server-rendered flavour.

Same orchestrator as routes/auth.py, but every step answers with a redirect
or a small HTML page instead of JSON.
"""
from html import escape

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from kakao_login.dependencies.auth import SESSION_KEY, end_session, get_orchestrator, get_session_id
from kakao_login.exceptions import AuthenticationRequired
from kakao_login.services.login_orchestrator import LoginOrchestrator

router = APIRouter(tags=["Pages"])


def _page(title: str, body: str, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
    return HTMLResponse(
        f"<!doctype html><html><head><meta charset=\"utf-8\"><title>{escape(title)}</title></head>"
        f"<body>{body}</body></html>",
        status_code=status_code,
    )


@router.get("/auth/kakao")
async def kakao_login_redirect(orchestrator: LoginOrchestrator = Depends(get_orchestrator)):
    """Send the browser straight to the Kakao consent screen."""
    return RedirectResponse(url=orchestrator.begin_login(), status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/auth/kakao/callback")
async def kakao_callback_redirect(
    request: Request,
    orchestrator: LoginOrchestrator = Depends(get_orchestrator)
):
    """Complete the login, then redirect to /success or /error."""
    result = await orchestrator.handle_callback(
        request.query_params,
        previous_session_id=get_session_id(request),
    )
    if not result.success:
        return RedirectResponse(url=f"/error?code={result.error.code}", status_code=status.HTTP_303_SEE_OTHER)

    request.session[SESSION_KEY] = result.session_id
    request.state.user_id = result.profile.identity
    return RedirectResponse(url="/success", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/success")
async def success_page(
    request: Request,
    orchestrator: LoginOrchestrator = Depends(get_orchestrator)
):
    """Logged-in landing page; anonymous visitors go back to /."""
    try:
        profile = await orchestrator.current_user(get_session_id(request))
    except AuthenticationRequired:
        return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)

    request.state.user_id = profile.identity
    name = escape(profile.display_name or str(profile.identity))
    body = (
        f"<h1>Welcome, {name}</h1>"
        f"<p>Kakao ID: {profile.identity}</p>"
        "<form method=\"post\" action=\"/auth/logout\"><button type=\"submit\">Log out</button></form>"
    )
    return _page("Login successful", body)


@router.get("/error")
async def error_page(code: str = "login_failed"):
    """Login failure page."""
    body = f"<h1>Kakao login failed</h1><p>{escape(code)}</p><p><a href=\"/auth/kakao\">Try again</a></p>"
    return _page("Login failed", body)


@router.post("/auth/logout")
async def logout_redirect(
    request: Request,
    orchestrator: LoginOrchestrator = Depends(get_orchestrator)
):
    """Log out, then redirect home. 401 without an active session."""
    await end_session(request, orchestrator)
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
