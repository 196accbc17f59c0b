"""Accounts: password hashing, bearer tokens and the /api/auth routes."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt
from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings
from .deps import get_store
from .errors import AuthenticationFailed, NotFoundError, RequestValidationFailed
from .models import AccountDetail, AuthResponse, Credentials
from .store import CoachStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

# Security scheme for Bearer token authentication
security = HTTPBearer(auto_error=False)


class AuthService:
    """JWT token creation/validation and password hashing."""

    def __init__(self, settings: Settings) -> None:
        self._secret_key = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self._expire_days = settings.access_token_expire_days

    def create_access_token(self, user_id: int, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + timedelta(days=self._expire_days),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Decode a token.

        Raises:
            AuthenticationFailed: if the token is expired or invalid.
        """
        try:
            return jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationFailed("Token has expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationFailed(f"Invalid token: {e}")

    @staticmethod
    def hash_password(password: str) -> str:
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(password: str, hashed_password: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            # malformed stored hash
            return False


@dataclass
class CurrentUser:
    """The account behind the bearer token."""

    user_id: int
    email: str


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """FastAPI dependency: 401 unless a valid bearer token is present."""
    if credentials is None:
        raise AuthenticationFailed("Not authenticated")
    payload = auth_service.verify_token(credentials.credentials)
    try:
        return CurrentUser(user_id=int(payload["sub"]), email=payload.get("email", ""))
    except (KeyError, ValueError):
        raise AuthenticationFailed("Invalid token: bad subject")


router = APIRouter(prefix="/api/auth", tags=["auth"])


def _require_credentials(body: Credentials) -> tuple[str, str]:
    if not body.email or not body.password:
        raise RequestValidationFailed("Email and password required")
    return body.email.strip().lower(), body.password


@router.post("/register", status_code=201, response_model=AuthResponse)
def register(
    body: Credentials,
    store: CoachStore = Depends(get_store),
    auth_service: AuthService = Depends(get_auth_service),
):
    email, password = _require_credentials(body)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise RequestValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    account = store.create_account(email, auth_service.hash_password(password))
    logger.info("Registered account %s", account.id)
    return AuthResponse(token=auth_service.create_access_token(account.id, account.email), user=account)


@router.post("/login", response_model=AuthResponse)
def login(
    body: Credentials,
    store: CoachStore = Depends(get_store),
    auth_service: AuthService = Depends(get_auth_service),
):
    email, password = _require_credentials(body)
    found = store.find_credentials(email)
    if found is None or not auth_service.verify_password(password, found[1]):
        raise AuthenticationFailed("Invalid credentials")
    account = found[0]
    return AuthResponse(token=auth_service.create_access_token(account.id, account.email), user=account)


@router.get("/me", response_model=AccountDetail)
def me(user: CurrentUser = Depends(get_current_user), store: CoachStore = Depends(get_store)):
    account = store.get_account(user.user_id)
    if account is None:
        raise NotFoundError("User not found")
    return account
