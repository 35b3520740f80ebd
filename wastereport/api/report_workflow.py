from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, status
from typing import Callable
import logging
from ..models import UploadedImage, LocationUpdateRequest, WorkflowSnapshot
from ..services.identity import SessionIdentity
from ..services.verification_workflow import (
    IdentityUnavailable,
    VerificationWorkflow,
    VerificationRejected,
    SubmissionRejected,
)
from .dependencies import (
    discard_workflow,
    get_identity,
    get_session_id,
    get_workflow,
    get_workflow_factory,
    login_required,
    workflow_registry,
)

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/workflow", response_model=WorkflowSnapshot)
async def start_report(
    session_id: str = Depends(get_session_id),
    identity: SessionIdentity = Depends(get_identity),
    build_workflow: Callable[[SessionIdentity], VerificationWorkflow] = Depends(get_workflow_factory)
):
    """
    Start a new waste report for the session user

    Resolves (or creates) the user and loads the recent reports. Any report
    already in progress for the session is replaced.
    """
    workflow = build_workflow(identity)
    try:
        user = await workflow.load()
    except IdentityUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    if user is None:
        raise login_required()

    discard_workflow(session_id)
    workflow_registry[session_id] = workflow
    return workflow.snapshot()

@router.get("/workflow", response_model=WorkflowSnapshot)
async def get_report_state(workflow: VerificationWorkflow = Depends(get_workflow)):
    """Current state of the report in progress"""
    return workflow.snapshot()

@router.delete("/workflow")
async def abandon_report(session_id: str = Depends(get_session_id)):
    """Drop the report in progress; pending operations are not awaited"""
    discard_workflow(session_id)
    return {"message": "Report abandoned"}

@router.post("/workflow/image", response_model=WorkflowSnapshot)
async def upload_image(
    image: UploadFile = File(...),
    workflow: VerificationWorkflow = Depends(get_workflow)
):
    """
    Select the waste image for the report

    - **image**: The image file showing the waste

    The image is not checked here; problems surface when it is verified.
    """
    try:
        content = await image.read()
    except Exception as e:
        logger.error(f"Error reading image file: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error reading image file"
        )

    await workflow.select_image(UploadedImage(
        content=content,
        content_type=image.content_type or "",
        filename=image.filename
    ))
    return workflow.snapshot()

@router.post("/workflow/verify", response_model=WorkflowSnapshot)
async def verify_image(workflow: VerificationWorkflow = Depends(get_workflow)):
    """
    Classify the selected image with Gemini

    On success the waste type and amount of the report are filled in. A
    failed or "no waste" verification is reported through the snapshot's
    state and notice, not as an error status.
    """
    try:
        await workflow.verify()
    except VerificationRejected as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return workflow.snapshot()

@router.put("/workflow/location", response_model=WorkflowSnapshot)
async def update_location(
    request: LocationUpdateRequest,
    workflow: VerificationWorkflow = Depends(get_workflow)
):
    """Set where the waste was found"""
    workflow.set_location(request.location)
    return workflow.snapshot()

@router.post("/workflow/submit", response_model=WorkflowSnapshot)
async def submit_report(workflow: VerificationWorkflow = Depends(get_workflow)):
    """
    Submit the verified report

    Only possible after a successful verification. If saving fails the
    report stays verified so it can be submitted again.
    """
    try:
        summary = await workflow.submit()
    except SubmissionRejected as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=workflow.notice.message if workflow.notice else "Failed to submit report"
        )
    return workflow.snapshot()
