import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ..auth import (
    TokenService,
    generate_reset_code,
    get_current_user_id,
    get_settings,
    get_password_hash,
    get_token_service,
    verify_password
)
from ..config import Settings
from ..crud import (
    DuplicateEmailError,
    ResetError,
    authenticate_user,
    consume_reset_code,
    create_user,
    get_user_by_email,
    store_reset_code
)
from ..database import get_session
from ..models import User
from ..responses import api_response
from ..schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    ProfileUpdate,
    ResetPasswordRequest,
    UserCreate,
    UserLogin,
    UserResponse,
    UserSummary
)

logger = logging.getLogger(__name__)

router = APIRouter()

FORGOT_MESSAGE = "If that email exists, an OTP has been sent."


def deliver_reset_code(email: str, code: str, settings: Settings) -> None:
    """Hand the code to the user. There is no mail transport; debug builds log it."""
    if settings.DEBUG:
        logger.info("Password reset code for %s: %s", email, code)


@router.post("/register")
def register(
    user_data: UserCreate,
    session: Session = Depends(get_session),
    token_service: TokenService = Depends(get_token_service)
):
    """Register a new user and sign them in."""
    if get_user_by_email(session, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists"
        )

    try:
        user = create_user(session, user_data.name, user_data.email, user_data.password)
    except DuplicateEmailError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists"
        )
    logger.info("Registered user %s", user.id)

    token = token_service.issue(user.id, user.email)
    body = AuthResponse(token=token, user=UserSummary.model_validate(user))
    return api_response(True, "Registration successful", body.model_dump(), status.HTTP_201_CREATED)


@router.post("/login")
def login(
    credentials: UserLogin,
    session: Session = Depends(get_session),
    token_service: TokenService = Depends(get_token_service)
):
    """Unknown email and wrong password produce the same response."""
    user = authenticate_user(session, credentials.email, credentials.password)
    if not user:
        logger.warning("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    token = token_service.issue(user.id, user.email)
    body = AuthResponse(token=token, user=UserSummary.model_validate(user))
    return api_response(True, "Login successful", body.model_dump())


@router.post("/forgot")
def request_reset_code(
    request_data: ForgotPasswordRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings)
):
    """Always succeeds so the response does not reveal whether the account exists."""
    ttl = timedelta(minutes=settings.RESET_CODE_EXPIRE_MINUTES)

    user = get_user_by_email(session, request_data.email)
    if user:
        code = generate_reset_code()
        store_reset_code(session, user, code, ttl)
        deliver_reset_code(user.email, code, settings)
        logger.info("Issued password reset code for user %s", user.id)

    return api_response(True, FORGOT_MESSAGE, {"expires_in": int(ttl.total_seconds())})


@router.put("/forgot")
def reset_password(
    reset_data: ResetPasswordRequest,
    session: Session = Depends(get_session)
):
    try:
        user = consume_reset_code(session, reset_data.email, reset_data.otp, reset_data.new_password)
    except ResetError as e:
        logger.warning("Rejected password reset: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info("Password reset for user %s", user.id)
    return api_response(True, "Password reset successfully. Please sign in.")


# ============================================
# Profile
# ============================================

def _get_user_or_404(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/profile")
def read_profile(
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    user = _get_user_or_404(session, user_id)
    return api_response(True, "Profile fetched", UserResponse.model_validate(user).model_dump())


@router.put("/profile")
def update_profile(
    profile_data: ProfileUpdate,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    """Update the name, and the password when ``new_password`` is given."""
    user = _get_user_or_404(session, user_id)

    if profile_data.new_password:
        if not profile_data.current_password:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is required to set a new password"
            )
        if not verify_password(profile_data.current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Current password is incorrect"
            )
        if len(profile_data.new_password) < 6:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="New password must be at least 6 characters"
            )
        user.password_hash = get_password_hash(profile_data.new_password)

    user.name = profile_data.name
    session.add(user)
    session.commit()
    session.refresh(user)

    return api_response(True, "Profile updated successfully", UserResponse.model_validate(user).model_dump())
