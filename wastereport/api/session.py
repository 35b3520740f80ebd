from fastapi import APIRouter, Depends
from ..models import SessionCreateRequest, SessionResponse
from ..services.identity import session_store, USER_EMAIL_KEY, USER_ROLE_KEY
from .dependencies import discard_workflow, get_session_id, purge_expired_sessions

router = APIRouter()

@router.post("", response_model=SessionResponse)
async def create_session(request: SessionCreateRequest):
    """
    Start a session for a user

    The returned session id must be sent in the `X-Session-Id` header.
    """
    purge_expired_sessions()
    session_id = session_store.create_session()
    session_store.set(session_id, USER_EMAIL_KEY, request.email)
    session_store.set(session_id, USER_ROLE_KEY, request.role.value)

    return SessionResponse(session_id=session_id, email=request.email, role=request.role)

@router.delete("")
async def delete_session(session_id: str = Depends(get_session_id)):
    """Log out, abandoning any report in progress"""
    discard_workflow(session_id)
    session_store.clear(session_id)
    return {"message": "Logged out"}
