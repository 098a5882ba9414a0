from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Boolean, JSON, TypeDecorator
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.sql import func
from datetime import datetime, timezone
import enum

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value):
    """Normalize a stored timestamp to aware UTC; naive values are already UTC."""
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EnumValue(TypeDecorator):
    """Store enum values (e.g. "open") rather than member names (e.g. "OPEN")"""
    impl = String
    cache_ok = True

    def __init__(self, enum_class, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, self.enum_class):
            return value.value
        return self.enum_class(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return self.enum_class(value)


class UserType(str, enum.Enum):
    TENDER = "tender"
    BIDDER = "bidder"


class BidderType(str, enum.Enum):
    CONTRACTOR = "CONTRACTOR"
    DEVELOPER = "DEVELOPER"
    SUPPLIER = "SUPPLIER"
    CONSULTANT = "CONSULTANT"
    BUYER = "BUYER"


class ProjectStatus(str, enum.Enum):
    OPEN = "open"
    ACTIVE = "active"
    CLOSED = "closed"
    AWARDED = "awarded"
    CANCELLED = "cancelled"


class NotificationType(str, enum.Enum):
    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_PUBLISHED = "PROJECT_PUBLISHED"
    BID_SUBMITTED = "BID_SUBMITTED"
    PROFILE_CREATED = "PROFILE_CREATED"
    BID_ACCEPTED = "BID_ACCEPTED"
    BID_REJECTED = "BID_REJECTED"
    TENDER_DEADLINE = "TENDER_DEADLINE"
    DOCUMENT_VERIFIED = "DOCUMENT_VERIFIED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    TENDER_DOCUMENT_UPLOADED = "TENDER_DOCUMENT_UPLOADED"
    BID_DOCUMENT_UPLOADED = "BID_DOCUMENT_UPLOADED"
    PROJECT_STATUS_CHANGED = "PROJECT_STATUS_CHANGED"
    TENDER_UPDATED = "TENDER_UPDATED"
    NEW_TENDER_AVAILABLE = "NEW_TENDER_AVAILABLE"
    SIGNUP_COMPLETE = "SIGNUP_COMPLETE"


DEFAULT_NOTIFICATION_PREFERENCES = {"email": True, "inApp": True, "push": False}


def default_notification_preferences():
    return dict(DEFAULT_NOTIFICATION_PREFERENCES)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    company_name = Column(String, nullable=False)
    user_type = Column(EnumValue(UserType, length=20), nullable=False)
    bidder_type = Column(EnumValue(BidderType, length=20), nullable=True)  # set only for bidders
    is_verified = Column(Boolean, default=False)
    verification_token = Column(String, unique=True, nullable=True)
    verification_expires = Column(DateTime(timezone=True), nullable=True)
    notification_preferences = Column(JSON, default=default_notification_preferences)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    tender_id = Column(Integer, nullable=False, index=True)
    tender_company = Column(String, nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    budget = Column(Float, nullable=False)
    location = Column(String, nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=False)
    category = Column(String, nullable=False, index=True)
    duration = Column(String, nullable=True)
    specifications = Column(Text, nullable=True)
    requirements = Column(JSON, default=list)
    documents = Column(JSON, default=list)
    has_files = Column(Boolean, default=False)
    status = Column(EnumValue(ProjectStatus, length=20), default=ProjectStatus.OPEN, index=True)
    bid_count = Column(Integer, default=0)
    progress = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    type = Column(EnumValue(NotificationType, length=50), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    # projectId / bidId / tenderId / profileId
    notification_metadata = Column("metadata", JSON, nullable=True)
