from sqlalchemy.orm import Session
from sqlalchemy import or_
from tenderchain.models import (
    User, Project, UserType, BidderType, ProjectStatus, default_notification_preferences, utcnow, as_utc
)
from tenderchain.matching import BIDDER_TYPE_CATEGORIES
from passlib.context import CryptContext
import hashlib
from datetime import timedelta
import secrets
from typing import Optional

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

VERIFICATION_EXPIRE_HOURS = 24
VISIBLE_PROJECT_STATUSES = (ProjectStatus.OPEN, ProjectStatus.ACTIVE)


def _prehash_password(password: str) -> str:
    """
    Pre-hash the raw password using SHA-256 before passing it to bcrypt.
    This prevents bcrypt from failing on extremely long passwords.
    """
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def hash_password(password: str) -> str:
    return pwd_context.hash(_prehash_password(password))


def verify_password(plain_password: str, hashed_password: str):
    return pwd_context.verify(_prehash_password(plain_password), hashed_password)


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()


def create_user(
    db: Session,
    email: str,
    password: str,
    company_name: str,
    user_type: UserType,
    bidder_type: Optional[BidderType] = None,
    expires_hours: int = VERIFICATION_EXPIRE_HOURS,
):
    db_user = User(
        email=email,
        password_hash=hash_password(password),
        company_name=company_name,
        user_type=user_type,
        bidder_type=bidder_type if user_type == UserType.BIDDER else None,
        is_verified=False,
        verification_token=secrets.token_urlsafe(32),
        verification_expires=utcnow() + timedelta(hours=expires_hours),
        notification_preferences=default_notification_preferences(),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_user_by_verification_token(db: Session, token: str):
    user = db.query(User).filter(User.verification_token == token).first()
    if not user or not user.verification_expires:
        return None
    if as_utc(user.verification_expires) <= utcnow():
        return None
    return user


def mark_user_verified(db: Session, user: User):
    user.is_verified = True
    user.verification_token = None
    user.verification_expires = None
    db.commit()
    db.refresh(user)
    return user


def create_project(db: Session, tender_id: int, tender_company: Optional[str] = None, **kwargs):
    project = Project(
        tender_id=tender_id,
        tender_company=tender_company,
        status=ProjectStatus.OPEN,
        bid_count=0,
        progress=0,
        **kwargs
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def get_project(db: Session, project_id: int):
    return db.query(Project).filter(Project.id == project_id).first()


def list_projects(
    db: Session,
    status: Optional[ProjectStatus] = None,
    category: Optional[str] = None,
    bidder_type: Optional[BidderType] = None,
    limit: int = 50,
):
    query = db.query(Project)
    if status:
        query = query.filter(Project.status == status)
    else:
        query = query.filter(Project.status.in_(VISIBLE_PROJECT_STATUSES))
    if category:
        query = query.filter(Project.category == category)

    relevant_categories = BIDDER_TYPE_CATEGORIES.get(bidder_type, ()) if bidder_type else ()
    if relevant_categories:
        conditions = [Project.category.in_(relevant_categories)]
        for name in relevant_categories:
            conditions.append(Project.category.ilike(f"%{name}%"))
            conditions.append(Project.specifications.ilike(f"%{name}%"))
        query = query.filter(or_(*conditions))

    return query.order_by(Project.created_at.desc(), Project.id.desc()).limit(limit).all()
