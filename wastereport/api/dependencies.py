from typing import Callable, Dict, Optional
from fastapi import Depends, Header, HTTPException, status
from ..services.identity import SessionIdentity, session_store, USER_EMAIL_KEY
from ..services.notification_service import notification_service
from ..services.verification_workflow import VerificationWorkflow

LOGIN_URL = "/login"

# Report workflows keyed by session id
workflow_registry: Dict[str, VerificationWorkflow] = {}

def login_required() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Login required",
        headers={"Location": LOGIN_URL},
    )

def discard_workflow(session_id: str):
    """Drop the report in progress for a session, releasing its image"""
    workflow = workflow_registry.pop(session_id, None)
    if workflow is not None:
        workflow.close()

def purge_expired_sessions():
    for session_id in session_store.purge_expired():
        discard_workflow(session_id)

def get_session_id(x_session_id: Optional[str] = Header(None)) -> str:
    purge_expired_sessions()
    if not x_session_id or not session_store.exists(x_session_id):
        raise login_required()
    session_store.touch(x_session_id)
    return x_session_id

def get_identity(session_id: str = Depends(get_session_id)) -> SessionIdentity:
    """Identity of the session user; absent email means the user must log in"""
    if not session_store.get(session_id, USER_EMAIL_KEY):
        raise login_required()
    return SessionIdentity(session_store, session_id)

def get_workflow_factory() -> Callable[[SessionIdentity], VerificationWorkflow]:
    def build(identity: SessionIdentity) -> VerificationWorkflow:
        return VerificationWorkflow(identity, notifier=notification_service.send_report_alert)
    return build

def get_workflow(session_id: str = Depends(get_session_id)) -> VerificationWorkflow:
    workflow = workflow_registry.get(session_id)
    if workflow is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No report in progress for this session. Start one first."
        )
    return workflow
