import asyncio
import base64
import logging
from typing import Awaitable, Callable, List, Optional

from wastereport.config import Settings, get_settings
from wastereport.crud import report as report_crud
from wastereport.models import (
    EncodedImage,
    Notice,
    NoticeLevel,
    Report,
    ReportDraft,
    ReportSummary,
    UploadedImage,
    VerificationResult,
    VerificationState,
    WorkflowSnapshot,
)
from wastereport.services import gemini_service
from wastereport.services.extraction import (
    ExtractionError,
    ResultValidationError,
    is_no_waste,
    parse_json_object,
    validate_verification_payload,
)
from wastereport.services.identity import SessionIdentity

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"

NO_WASTE_MESSAGE = "No waste detected in the image. Please upload an image containing waste."
PARSE_FAILED_MESSAGE = "Failed to process AI response. Please try again."
VERIFY_FAILED_MESSAGE = "Error during verification. Please try again."
LOW_CONFIDENCE_MESSAGE = "The waste could not be identified with enough confidence. Please try another image."
NO_WASTE_SUBMIT_MESSAGE = "No waste detected in the image. Please upload a new image."
VERIFY_FIRST_MESSAGE = "Please verify the waste before submitting or log in."
LOCATION_REQUIRED_MESSAGE = "Please enter the waste location."
SUBMIT_IN_PROGRESS_MESSAGE = "A report is already being submitted."
SUBMIT_SUCCESS_MESSAGE = "Report submitted successfully! A collector will be assigned soon."
SUBMIT_FAILED_MESSAGE = "Failed to submit report. Please try again."
USER_LOOKUP_FAILED_MESSAGE = "Could not load your account. Please try again later."

Classifier = Callable[[str, str], Awaitable[str]]
Notifier = Callable[[dict], Awaitable[bool]]


class WorkflowError(Exception):
    """An operation was refused; message is safe to show to the user"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class VerificationRejected(WorkflowError):
    pass


class SubmissionRejected(WorkflowError):
    pass


class IdentityUnavailable(WorkflowError):
    """The session user could not be looked up or created"""


async def encode_image(image: UploadedImage) -> EncodedImage:
    """Base64 encode an uploaded image off the event loop"""
    encoded = await asyncio.to_thread(base64.b64encode, image.content)
    return EncodedImage(
        data=encoded.decode("utf-8"),
        mime_type=image.content_type or DEFAULT_MIME_TYPE
    )


class VerificationWorkflow:
    """
    Drives one user's waste report from image upload to submission.

    The report can only be submitted after the image was verified by the
    classifier. Waste type and amount of the draft are copied from the last
    successful verification and are never edited directly.

    Only one verification and one submission can be in flight at a time.
    Selecting a new image while a verification runs discards that
    verification's outcome once it completes.
    """

    def __init__(
        self,
        identity: SessionIdentity,
        classifier: Optional[Classifier] = None,
        report_store=None,
        notifier: Optional[Notifier] = None,
        settings: Optional[Settings] = None
    ):
        self.identity = identity
        self.classifier = classifier or gemini_service.classify_waste_image
        self.report_store = report_store or report_crud
        self.notifier = notifier
        self.settings = settings or get_settings()

        self.state = VerificationState.IDLE
        self.draft = ReportDraft()
        self.verification_result: Optional[VerificationResult] = None
        self.image: Optional[UploadedImage] = None
        self.encoded_image: Optional[EncodedImage] = None
        self.reports: List[ReportSummary] = []
        self.notices: List[Notice] = []
        self.is_submitting = False

        # Bumped on every image change; async work started for an older
        # generation must not touch the workflow
        self._image_generation = 0
        self._verify_attempts = 0

    # Guards

    @property
    def can_verify(self) -> bool:
        return self.image is not None and self.state != VerificationState.VERIFYING

    @property
    def can_submit(self) -> bool:
        return (
            not self.is_submitting
            and self.state == VerificationState.SUCCESS
            and self.identity.current_user is not None
        )

    @property
    def notice(self) -> Optional[Notice]:
        return self.notices[-1] if self.notices else None

    def _notify(self, level: NoticeLevel, message: str):
        self.notices.append(Notice(level=level, message=message))

    def _is_stale(self, generation: int) -> bool:
        return generation != self._image_generation

    # Operations

    async def load(self):
        """
        Resolve the session user and fetch the recent reports

        Returns None when the session has no user. Failing to fetch the recent
        reports is logged and leaves the list empty.

        Raises:
            IdentityUnavailable: when the user lookup itself failed
        """
        try:
            user = await self.identity.resolve_user()
        except Exception as e:
            logger.exception(f"Error resolving session user: {str(e)}")
            self._notify(NoticeLevel.ERROR, USER_LOOKUP_FAILED_MESSAGE)
            raise IdentityUnavailable(USER_LOOKUP_FAILED_MESSAGE)
        if user is None:
            return None

        try:
            recent_reports = await self.report_store.get_recent_reports(self.settings.RECENT_REPORTS_LIMIT)
            self.reports = [
                ReportSummary.from_report(Report.from_mongo(report))
                for report in recent_reports or []
            ]
        except Exception as e:
            logger.error(f"Error fetching recent reports: {str(e)}")
        return user

    async def select_image(self, image: UploadedImage) -> Optional[EncodedImage]:
        """
        Make image the current upload and encode it for preview

        Returns the encoding, or None when a newer image was selected while
        this one was being encoded.
        """
        self._image_generation += 1
        generation = self._image_generation

        self.image = image
        self.encoded_image = None
        self.verification_result = None
        self._verify_attempts = 0
        if self.state != VerificationState.VERIFYING:
            self.state = VerificationState.IDLE

        logger.info(f"Selected image {image.filename!r} ({image.size / 1024:.2f} KB, {image.content_type or 'unknown type'})")

        encoded = await encode_image(image)
        if self._is_stale(generation):
            logger.debug("Discarding encoding of a replaced image")
            return None

        self.encoded_image = encoded
        return encoded

    def set_location(self, location: str):
        self.draft.location = location

    def _check_policy(self, image: UploadedImage) -> Optional[str]:
        allowed_types = self.settings.ALLOWED_IMAGE_TYPES
        if allowed_types and image.content_type not in allowed_types:
            return f"Unsupported file type {image.content_type or 'unknown'}. Please upload a {', '.join(allowed_types)} image."

        max_bytes = self.settings.MAX_IMAGE_BYTES
        if max_bytes is not None and image.size > max_bytes:
            return f"Image is too large. Please upload an image up to {max_bytes / (1024 * 1024):.1f} MB."

        return None

    async def verify(self) -> VerificationState:
        """
        Classify the current image and fill the draft from the result

        Raises:
            VerificationRejected: when there is no image, a verification is
                already running or the attempt limit was reached
        """
        if self.image is None:
            raise VerificationRejected("Please upload an image before verifying.")
        if self.state == VerificationState.VERIFYING:
            raise VerificationRejected("Verification is already in progress.")

        max_attempts = self.settings.MAX_VERIFY_ATTEMPTS
        if max_attempts is not None and self._verify_attempts >= max_attempts:
            raise VerificationRejected("Verification attempt limit reached. Please upload a new image.")

        generation = self._image_generation
        image = self.image

        self.state = VerificationState.VERIFYING
        self.verification_result = None
        self._verify_attempts += 1

        policy_error = self._check_policy(image)
        if policy_error:
            logger.warning(f"Image rejected by upload policy: {policy_error}")
            self.state = VerificationState.FAILURE
            self._notify(NoticeLevel.ERROR, policy_error)
            return self.state

        try:
            encoded = await encode_image(image)
            response_text = await self.classifier(encoded.data, encoded.mime_type)
        except Exception as e:
            logger.exception(f"Error verifying waste: {str(e)}")
            if self._is_stale(generation):
                return self._discard_stale_verification()
            self.state = VerificationState.FAILURE
            self._notify(NoticeLevel.ERROR, VERIFY_FAILED_MESSAGE)
            return self.state

        if self._is_stale(generation):
            return self._discard_stale_verification()

        if self.encoded_image is None:
            self.encoded_image = encoded

        try:
            payload = parse_json_object(response_text)

            if is_no_waste(payload):
                logger.info("Classifier found no waste in the image")
                self.state = VerificationState.NO_WASTE
                self.verification_result = None
                self._notify(NoticeLevel.WARNING, NO_WASTE_MESSAGE)
                return self.state

            result = validate_verification_payload(payload)
        except (ExtractionError, ResultValidationError) as e:
            logger.error(f"Failed to parse AI response ({str(e)}): {response_text[:500]}")
            self.state = VerificationState.FAILURE
            self._notify(NoticeLevel.ERROR, PARSE_FAILED_MESSAGE)
            return self.state

        min_confidence = self.settings.MIN_CONFIDENCE
        if min_confidence is not None and result.confidence < min_confidence:
            logger.info(f"Rejecting classification with confidence {result.confidence} below {min_confidence}")
            self.state = VerificationState.FAILURE
            self._notify(NoticeLevel.ERROR, LOW_CONFIDENCE_MESSAGE)
            return self.state

        self.verification_result = result
        self.state = VerificationState.SUCCESS
        self.draft.waste_type = result.waste_type
        self.draft.amount = result.quantity
        logger.info(f"Verified waste: {result.waste_type}, {result.quantity} ({result.confidence}% confidence)")
        return self.state

    def _discard_stale_verification(self) -> VerificationState:
        logger.info("Discarding verification of a replaced image")
        self.state = VerificationState.IDLE
        self.verification_result = None
        return self.state

    async def submit(self) -> Optional[ReportSummary]:
        """
        Persist the verified draft as a report

        Returns the new report, or None when persisting failed. In that case
        the draft and the verification are kept so the user can retry.

        Raises:
            SubmissionRejected: when the image was not successfully verified,
                nobody is logged in or a submission is already running
        """
        if self.is_submitting:
            raise SubmissionRejected(SUBMIT_IN_PROGRESS_MESSAGE)

        user = self.identity.current_user
        if self.state != VerificationState.SUCCESS or user is None:
            if self.state == VerificationState.NO_WASTE:
                message = NO_WASTE_SUBMIT_MESSAGE
            else:
                message = VERIFY_FIRST_MESSAGE
            self._notify(NoticeLevel.ERROR, message)
            raise SubmissionRejected(message)

        if not self.draft.location.strip():
            self._notify(NoticeLevel.ERROR, LOCATION_REQUIRED_MESSAGE)
            raise SubmissionRejected(LOCATION_REQUIRED_MESSAGE)

        self.is_submitting = True
        try:
            report = await self.report_store.create_report(
                user.id,
                self.draft.location,
                self.draft.waste_type,
                self.draft.amount,
                self.encoded_image.preview_url if self.encoded_image else None,
                self.verification_result.to_metadata() if self.verification_result else None
            )
            if not report:
                raise ValueError("Failed to create report")
            summary = ReportSummary.from_report(Report.from_mongo(report))
        except Exception as e:
            logger.exception(f"Error submitting report: {str(e)}")
            self._notify(NoticeLevel.ERROR, SUBMIT_FAILED_MESSAGE)
            return None
        finally:
            self.is_submitting = False

        self.reports.insert(0, summary)
        self._reset()
        self._notify(NoticeLevel.SUCCESS, SUBMIT_SUCCESS_MESSAGE)
        logger.info(f"Report {summary.id} submitted by user {user.id}")

        if self.notifier is not None:
            try:
                await self.notifier(report)
            except Exception as e:
                logger.exception(f"Error sending report alert for {summary.id}: {str(e)}")

        return summary

    def close(self):
        """Drop the image and draft of an abandoned or expired report"""
        self._reset()
        self.notices.clear()

    def _reset(self):
        self._image_generation += 1
        self.draft = ReportDraft()
        self.image = None
        self.encoded_image = None
        self.verification_result = None
        self._verify_attempts = 0
        self.state = VerificationState.IDLE

    def snapshot(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            state=self.state,
            draft=self.draft.model_copy(),
            verification_result=self.verification_result,
            preview=self.encoded_image.preview_url if self.encoded_image else None,
            has_image=self.image is not None,
            can_verify=self.can_verify,
            can_submit=self.can_submit,
            is_submitting=self.is_submitting,
            notice=self.notice,
            reports=list(self.reports)
        )
