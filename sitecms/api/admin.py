"""Admin account and session API endpoints."""

import logging
import time
from collections import defaultdict

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.core import get_db
from sitecms.core.config import Settings
from sitecms.core.request_utils import get_client_ip
from sitecms.middleware.admin_auth import (
    TOKEN_COOKIE_NAME,
    get_auth_settings,
    get_current_admin,
    require_session_token,
)
from sitecms.models.admin import AdminAccount
from sitecms.schemas.admin import (
    AdminCreatedResponse,
    AdminCreateRequest,
    AdminResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
)
from sitecms.services.auth import (
    AuthService,
    ByEmail,
    DuplicateAccount,
    InvalidCredentials,
    ValidationError,
    login_identifier,
)

logger = logging.getLogger(__name__)

# Failed login attempts per client IP (monotonic timestamps)
_login_failures: dict[str, list[float]] = defaultdict(list)


def _check_login_rate_limit(client_ip: str, config: Settings) -> None:
    """Reject the attempt if the client IP has too many recent failures."""
    now = time.monotonic()
    recent = [t for t in _login_failures[client_ip] if now - t < config.login_window_seconds]
    if recent:
        _login_failures[client_ip] = recent
    else:
        _login_failures.pop(client_ip, None)
    if len(recent) >= config.login_max_attempts:
        logger.warning("Login rate limit exceeded", extra={"client_ip": client_ip})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Please try again later.",
        )


def _record_login_failure(client_ip: str) -> None:
    _login_failures[client_ip].append(time.monotonic())


router = APIRouter(prefix="/admin", tags=["admin"])


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_auth_settings),
) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(db, config)


@router.post(
    "/create",
    response_model=AdminCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_admin(
    request: AdminCreateRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AdminCreatedResponse:
    """Create an administrator account.

    Returns 422 for malformed fields and 400 when the username or email
    is already taken.
    """
    try:
        admin = await auth_service.create_admin(
            username=request.username,
            email=request.email,
            password=request.password,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"loc": ["body", e.field], "msg": str(e), "type": "value_error"}],
        ) from e
    except DuplicateAccount as e:
        logger.info(f"Rejected duplicate admin {e.field}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return AdminCreatedResponse(
        message="Administrator account created successfully",
        admin=AdminResponse.model_validate(admin),
    )


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def login(
    request: LoginRequest,
    http_request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Authenticate with email or username and receive a session token.

    The token is returned in the body and set as the ``token`` cookie.
    """
    client_ip = get_client_ip(http_request) or "unknown"
    config = auth_service.config
    _check_login_rate_limit(client_ip, config)

    try:
        identifier = login_identifier(request.email, request.username)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    try:
        admin = await auth_service.verify_credentials(identifier, request.password)
    except InvalidCredentials as e:
        _record_login_failure(client_ip)
        kind = "email" if isinstance(identifier, ByEmail) else "username"
        logger.info(f"Failed admin login by {kind}", extra={"client_ip": client_ip})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e

    token = auth_service.issue_token(admin)
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        max_age=int(auth_service.token_lifetime.total_seconds()),
        httponly=True,
        secure=config.cookie_secure,
        samesite=config.cookie_samesite,
    )
    logger.info(f"Admin logged in: {admin.username}", extra={"client_ip": client_ip})
    return LoginResponse(token=token, admin=AdminResponse.model_validate(admin))


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    current_admin: AdminAccount = Depends(get_current_admin),
) -> ProfileResponse:
    """Get the authenticated admin's profile."""
    return ProfileResponse(admin=AdminResponse.model_validate(current_admin))


@router.api_route(
    "/logout",
    methods=["POST", "GET"],
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def logout(
    response: Response,
    token: str = Depends(require_session_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Revoke the presented token and clear the cookie.

    The token must be valid, or already revoked, in which case nothing new
    is written and the call still succeeds.
    """
    await auth_service.revoke_token(token)
    await auth_service.session.commit()
    response.delete_cookie(
        key=TOKEN_COOKIE_NAME,
        httponly=True,
        secure=auth_service.config.cookie_secure,
        samesite=auth_service.config.cookie_samesite,
    )
    logger.info("Admin logged out")
    return MessageResponse(message="Logged out successfully")
