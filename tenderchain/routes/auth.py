from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from tenderchain.database import get_db
from tenderchain.schemas import (
    UserSignup, UserLogin, VerifyEmailRequest, SignupResponse, UserResponse, LoginResponse
)
from tenderchain.crud import (
    get_user_by_email, create_user, verify_password,
    get_user_by_verification_token, mark_user_verified
)
from tenderchain.auth import create_user_token
from tenderchain.models import User, UserType, BidderType, NotificationType
from tenderchain.notifications import create_notification
from tenderchain import mailer
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 8


def bad_request(detail: str):
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def validate_signup(user_data: UserSignup):
    if not user_data.email or not user_data.password or not user_data.company_name or not user_data.user_type:
        raise bad_request("All fields are required")

    if user_data.user_type not in [t.value for t in UserType]:
        raise bad_request("Invalid user type")
    user_type = UserType(user_data.user_type)

    bidder_type = None
    if user_type == UserType.BIDDER:
        if not user_data.bidder_type:
            raise bad_request("Bidder type is required for bidder accounts")
        if user_data.bidder_type not in [t.value for t in BidderType]:
            raise bad_request("Invalid bidder type")
        bidder_type = BidderType(user_data.bidder_type)

    if len(user_data.password) < MIN_PASSWORD_LENGTH:
        raise bad_request(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    return user_type, bidder_type


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        company_name=user.company_name,
        user_type=user.user_type,
        bidder_type=user.bidder_type,
        is_verified=bool(user.is_verified),
        notification_preferences=user.notification_preferences,
        created_at=user.created_at,
    )


@router.post("/signup", response_model=SignupResponse, response_model_exclude_none=True)
def signup(user_data: UserSignup, db: Session = Depends(get_db)):
    user_type, bidder_type = validate_signup(user_data)

    if get_user_by_email(db, user_data.email):
        raise bad_request("User already exists")

    db_user = create_user(
        db,
        email=user_data.email,
        password=user_data.password,
        company_name=user_data.company_name,
        user_type=user_type,
        bidder_type=bidder_type,
    )
    logger.info("User %s created (%s)", db_user.id, user_type.value)

    email_sent = True
    warnings = []
    try:
        mailer.send_verification_email(db_user.email, db_user.verification_token, db_user.company_name)
    except Exception as exc:
        logger.error("User %s created but verification email failed: %s", db_user.id, exc)
        email_sent = False
        warnings.append("Email delivery failed")

    try:
        create_notification(
            db,
            db_user.id,
            NotificationType.SIGNUP_COMPLETE,
            "Welcome to TenderChain!",
            f"Welcome {db_user.company_name}! Your account has been created successfully. "
            "Please verify your email to get started.",
            {"profileId": str(db_user.id)},
        )
    except mailer.MailerError as exc:
        logger.error("Welcome notification stored but email to user %s failed: %s", db_user.id, exc)
        warnings.append("Welcome email delivery failed")
    except Exception as exc:
        db.rollback()
        logger.error("Failed to create signup notification for user %s: %s", db_user.id, exc)
        warnings.append("Welcome notification failed")

    if email_sent:
        message = "User created successfully. Please check your email for verification."
    else:
        message = (
            "User created successfully, but there was an issue sending the verification email. "
            "You can request a new verification email from the login page."
        )
    return SignupResponse(
        message=message,
        email_sent=email_sent,
        warning="; ".join(warnings) or None,
    )


@router.post("/verify-email")
def verify_email(request: VerifyEmailRequest, db: Session = Depends(get_db)):
    user = get_user_by_verification_token(db, request.token)
    if not user:
        raise bad_request("Invalid or expired verification token")

    user = mark_user_verified(db, user)
    return {"message": "Email verified successfully", "user": to_user_response(user).model_dump(by_alias=True, mode="json")}


@router.post("/login", response_model=LoginResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = get_user_by_email(db, credentials.email)
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )
    return LoginResponse(token=create_user_token(user), user=to_user_response(user))
