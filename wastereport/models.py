from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Union
from datetime import datetime, timezone
from enum import Enum
from bson import ObjectId

NO_WASTE_SENTINEL = "none"

class UserRole(str, Enum):
    REPORTER = "reporter"
    COLLECTOR = "collector"

class User(BaseModel):
    id: str = Field(..., alias="_id")
    email: EmailStr
    name: str
    created_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True
        json_encoders = {
            datetime: lambda v: v.isoformat(),
            ObjectId: lambda v: str(v)
        }

    @classmethod
    def from_mongo(cls, data: dict):
        """Convert MongoDB document to User model"""
        if not data:
            return None
        data = dict(data)
        if "_id" in data:
            data["_id"] = str(data["_id"])
        elif "id" in data:
            data["_id"] = str(data.pop("id"))
        return cls(**data)

class SessionCreateRequest(BaseModel):
    email: EmailStr
    role: UserRole = UserRole.REPORTER

class SessionResponse(BaseModel):
    session_id: str
    email: EmailStr
    role: UserRole

class VerificationState(str, Enum):
    IDLE = "idle"
    VERIFYING = "verifying"
    SUCCESS = "success"
    FAILURE = "failure"
    NO_WASTE = "no_waste"

class VerificationResult(BaseModel):
    waste_type: str = Field(..., alias="wasteType")
    quantity: str
    confidence: Union[int, float]

    class Config:
        populate_by_name = True

    def to_metadata(self) -> str:
        """Serialize the result the way it is stored on a report"""
        return self.model_dump_json(by_alias=True)

class UploadedImage(BaseModel):
    content: bytes
    content_type: str = ""
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

class EncodedImage(BaseModel):
    data: str  # Base64 encoded image
    mime_type: str

    @property
    def preview_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

class ReportDraft(BaseModel):
    location: str = ""
    waste_type: str = ""
    amount: str = ""

class LocationUpdateRequest(BaseModel):
    location: str

class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"

class Notice(BaseModel):
    level: NoticeLevel
    message: str

class ReportStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class Report(BaseModel):
    id: Optional[str] = Field(None, alias="_id")
    user_id: str
    location: str
    waste_type: str
    amount: str
    image_url: Optional[str] = None  # Base64 data URL of the uploaded image
    verification_result: Optional[str] = None  # JSON encoded VerificationResult
    status: ReportStatus = ReportStatus.PENDING
    created_at: datetime

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True
        json_encoders = {
            datetime: lambda v: v.isoformat(),
            ObjectId: lambda v: str(v)
        }

    @classmethod
    def from_mongo(cls, data: dict):
        """Convert MongoDB document to Report model"""
        if not data:
            return None
        data = dict(data)

        # Convert _id to string if it exists
        if "_id" in data:
            data["_id"] = str(data["_id"])
        elif "id" in data:
            data["_id"] = str(data.pop("id"))

        if isinstance(data.get("created_at"), str):
            data["created_at"] = datetime.fromisoformat(data["created_at"])

        return cls(**data)

class ReportSummary(BaseModel):
    """Report as shown in the recent reports table"""
    id: str
    location: str
    waste_type: str
    amount: str
    created_at: str  # ISO calendar date, no time component
    status: ReportStatus

    @classmethod
    def from_report(cls, report: Report):
        created_at = report.created_at
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone(timezone.utc)
        return cls(
            id=report.id,
            location=report.location,
            waste_type=report.waste_type,
            amount=report.amount,
            created_at=created_at.date().isoformat(),
            status=report.status
        )

class WorkflowSnapshot(BaseModel):
    state: VerificationState
    draft: ReportDraft
    verification_result: Optional[VerificationResult] = None
    preview: Optional[str] = None
    has_image: bool = False
    can_verify: bool = False
    can_submit: bool = False
    is_submitting: bool = False
    notice: Optional[Notice] = None
    reports: List[ReportSummary] = []

class ImpactData(BaseModel):
    waste_collected: float = 0  # kg
    reports_submitted: int = 0
    tokens_earned: int = 0
    co2_offset: float = 0  # kg

class EarningsResponse(BaseModel):
    user_id: str
    total_earnings: int

class ReportList(BaseModel):
    count: int
    results: List[ReportSummary]
