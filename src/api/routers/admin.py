"""Admin authentication and account endpoints.

Login sets the HTTP-only session cookie; every other endpoint here
requires a valid session.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from src.api.database import get_db
from src.api.dependencies.auth import (
    CurrentAdmin,
    get_auth_service,
    get_session_token,
)
from src.api.schemas import (
    AdminUserCreate,
    AdminUserOut,
    AdminUserUpdate,
    DataResponse,
    DeletedOut,
    HashPasswordOut,
    HashPasswordRequest,
    LoginRequest,
    LogoutInfo,
    SessionInfo,
)
from src.services import revalidation
from src.services.auth.accounts import AccountService
from src.services.auth.auth_service import AuthService
from src.services.auth.passwords import PasswordHasher, get_password_hasher

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_account_service(
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> AccountService:
    """Request-scoped account service."""
    return AccountService(db, hasher=hasher)


Accounts = Annotated[AccountService, Depends(get_account_service)]


# =============================================================================
# SESSION ENDPOINTS
# =============================================================================


@router.post(
    "/login",
    response_model=DataResponse[SessionInfo],
    summary="Log in",
    description="Verify credentials and set the session cookie.",
)
def login(
    credentials: LoginRequest,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[SessionInfo]:
    """Authenticate an admin and open a session.

    Args:
        credentials: Username and password.
        response: Outgoing response (receives the cookie).
        auth: Auth service.
        db: Database session.

    Returns:
        Username and session expiry.

    Raises:
        InvalidInputError: 400 if a credential is missing.
        NotAuthenticatedError: 401 on unknown username or wrong password.
    """
    user, issued = auth.login(credentials.username, credentials.password, response)
    db.commit()
    return DataResponse[SessionInfo](
        data=SessionInfo(username=user.username, expires_at=issued.expires_at)
    )


@router.post(
    "/logout",
    response_model=DataResponse[LogoutInfo],
    summary="Log out",
)
def logout(
    response: Response,
    token: Annotated[str | None, Depends(get_session_token)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[LogoutInfo]:
    """Destroy the current session, if any, and clear the cookie."""
    auth.logout(token, response)
    db.commit()
    return DataResponse[LogoutInfo](data=LogoutInfo())


@router.get(
    "/me",
    response_model=DataResponse[SessionInfo],
    summary="Current admin",
)
def me(admin: CurrentAdmin) -> DataResponse[SessionInfo]:
    """Return the authenticated admin."""
    return DataResponse[SessionInfo](
        data=SessionInfo(username=admin.username, expires_at=admin.expires_at)
    )


# =============================================================================
# ACCOUNT ENDPOINTS
# =============================================================================


@router.get(
    "/users",
    response_model=DataResponse[list[AdminUserOut]],
    summary="List admins",
)
def list_users(_admin: CurrentAdmin, accounts: Accounts) -> DataResponse[list[AdminUserOut]]:
    """List admin accounts ordered by creation."""
    users = accounts.list_users()
    return DataResponse[list[AdminUserOut]](
        data=[AdminUserOut.model_validate(u) for u in users]
    )


@router.post(
    "/users",
    response_model=DataResponse[AdminUserOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create admin",
)
def create_user(
    payload: AdminUserCreate,
    _admin: CurrentAdmin,
    accounts: Accounts,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[AdminUserOut]:
    """Create an admin account.

    Raises:
        InvalidInputError: 400 on blank username or short password.
        ConflictError: 409 if the username exists.
    """
    user = accounts.create(payload.username, payload.password)
    db.commit()
    revalidation.invalidate(response, revalidation.admin_user_paths())
    return DataResponse[AdminUserOut](data=AdminUserOut.model_validate(user))


@router.get(
    "/users/{user_id}",
    response_model=DataResponse[AdminUserOut],
    summary="Get admin",
)
def get_user(
    user_id: int,
    _admin: CurrentAdmin,
    accounts: Accounts,
) -> DataResponse[AdminUserOut]:
    """Get one admin account.

    Raises:
        NotFoundError: 404 if the user does not exist.
    """
    return DataResponse[AdminUserOut](data=AdminUserOut.model_validate(accounts.get(user_id)))


@router.patch(
    "/users/{user_id}",
    response_model=DataResponse[AdminUserOut],
    summary="Update admin",
)
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    _admin: CurrentAdmin,
    accounts: Accounts,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[AdminUserOut]:
    """Change an admin's username and/or password.

    Raises:
        NotFoundError: 404 if the user does not exist.
        InvalidInputError: 400 on empty payload or invalid values.
        ConflictError: 409 if the new username exists.
    """
    user = accounts.update(user_id, username=payload.username, password=payload.password)
    db.commit()
    revalidation.invalidate(response, revalidation.admin_user_paths())
    return DataResponse[AdminUserOut](data=AdminUserOut.model_validate(user))


@router.delete(
    "/users/{user_id}",
    response_model=DataResponse[DeletedOut],
    summary="Delete admin",
)
def delete_user(
    user_id: int,
    admin: CurrentAdmin,
    accounts: Accounts,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> DataResponse[DeletedOut]:
    """Delete an admin and all of their sessions.

    Raises:
        NotFoundError: 404 if the user does not exist.
        InvariantViolationError: 400 for the last admin or self-deletion.
    """
    accounts.delete(user_id, acting_user_id=admin.user_id)
    db.commit()
    revalidation.invalidate(response, revalidation.admin_user_paths())
    return DataResponse[DeletedOut](data=DeletedOut(id=user_id))


@router.post(
    "/hash-password",
    response_model=DataResponse[HashPasswordOut],
    summary="Hash a password",
    description="bcrypt helper for preparing seed data by hand.",
)
def hash_password(
    payload: HashPasswordRequest,
    _admin: CurrentAdmin,
    accounts: Accounts,
) -> DataResponse[HashPasswordOut]:
    """Return the bcrypt hash of a password."""
    return DataResponse[HashPasswordOut](
        data=HashPasswordOut(hash=accounts.hash_password(payload.password))
    )
