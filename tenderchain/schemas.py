from pydantic import BaseModel, EmailStr
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional
from datetime import datetime
from tenderchain.models import BidderType, NotificationType, ProjectStatus, UserType


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ------- Auth -------
class UserSignup(CamelModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    company_name: Optional[str] = None
    user_type: Optional[str] = None
    bidder_type: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class VerifyEmailRequest(BaseModel):
    token: str


class SignupResponse(CamelModel):
    message: str
    email_sent: bool
    warning: Optional[str] = None


class UserResponse(CamelModel):
    id: int
    email: str
    company_name: str
    user_type: UserType
    bidder_type: Optional[BidderType] = None
    is_verified: bool
    notification_preferences: Optional[dict] = None
    created_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


# ------- Projects -------
class ProjectCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    budget: Optional[float] = None
    location: Optional[str] = None
    deadline: Optional[datetime] = None
    category: Optional[str] = None
    duration: Optional[str] = None
    specifications: Optional[str] = None
    requirements: Optional[List[str]] = None
    documents: Optional[List[dict]] = None
    has_files: Optional[bool] = None


class ProjectResponse(CamelModel):
    id: int
    title: str
    description: str
    budget: float
    location: Optional[str] = None
    deadline: datetime
    category: str
    duration: Optional[str] = None
    specifications: Optional[str] = None
    requirements: List[str] = []
    documents: List[dict] = []
    has_files: bool = False
    status: ProjectStatus
    bid_count: int = 0
    progress: int = 0
    tender_id: int
    tender_company: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectCreatedResponse(CamelModel):
    message: str
    project_id: str
    warning: Optional[str] = None


class ProjectListResponse(CamelModel):
    projects: List[ProjectResponse]
    filtered: bool
    filter_type: Optional[BidderType] = None


# ------- Notifications -------
class NotificationMetadata(CamelModel):
    project_id: Optional[str] = None
    bid_id: Optional[str] = None
    tender_id: Optional[str] = None
    profile_id: Optional[str] = None


class NotificationResponse(CamelModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    read: bool
    created_at: datetime
    metadata: Optional[NotificationMetadata] = None


class NotificationListResponse(CamelModel):
    notifications: List[NotificationResponse]
    unread_count: int


class NotificationReadUpdate(CamelModel):
    notification_ids: Optional[List[int]] = None
    mark_as_read: bool = True


class NotificationPreferencesUpdate(CamelModel):
    email: Optional[bool] = None
    in_app: Optional[bool] = None
    push: Optional[bool] = None
    mode: Literal["merge", "replace"] = "merge"

    class Config:
        extra = "forbid"


class NotificationPreferencesResponse(BaseModel):
    preferences: dict
