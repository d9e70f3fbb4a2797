# ============================================================================
# FILE: gymsched/api/dependencies.py
# Caller identity and role/tenant checks. Runs before the schedule core,
# which only ever receives an already-authorized user id.
# ============================================================================
from dataclasses import dataclass
import enum
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from gymsched.config.database import get_db
from gymsched.config.settings import settings
from gymsched.core.exceptions import AccessDeniedError, ScheduleError

# ============================================================================
# Security Schemes
# ============================================================================

jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token",
    auto_error=False,
)


class AuthenticationError(ScheduleError):
    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "Could not validate credentials"


class UserType(str, enum.Enum):
    ADMIN = "admin"
    OWNER = "owner"
    COACH = "coach"
    CLIENT = "client"


STAFF_TYPES = (UserType.ADMIN, UserType.OWNER, UserType.COACH)


@dataclass(frozen=True)
class CurrentUser:
    """Identity extracted from the access token"""
    id: str
    user_type: UserType
    gym_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN


# ============================================================================
# JWT Token Functions
# ============================================================================

def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Raises:
        AuthenticationError: If token is invalid, expired or of the wrong type
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise AuthenticationError(f"Could not validate credentials: {str(e)}")

    if payload.get("type", "access") != "access":
        raise AuthenticationError("Invalid token type")

    return payload


# ============================================================================
# Authentication Dependencies
# ============================================================================

async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(jwt_security)
) -> CurrentUser:
    """
    Dependency to get the caller from the JWT access token.

    Expected claims: ``sub`` (user id), ``user_type``, optional ``gym_id``.
    """
    if credentials is None:
        raise AuthenticationError("Authentication required")

    payload = verify_access_token(credentials.credentials)

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError()

    try:
        user_type = UserType(payload.get("user_type", UserType.CLIENT.value))
    except ValueError:
        raise AuthenticationError("Unknown user type in token")

    return CurrentUser(id=str(user_id), user_type=user_type, gym_id=payload.get("gym_id"))


async def require_gym_member(
        current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """Any non-admin caller must belong to a gym to see or book schedules"""
    if not current_user.is_admin and not current_user.gym_id:
        raise AccessDeniedError("You must be assigned to a gym to use schedules")
    return current_user


async def require_staff(
        current_user: CurrentUser = Depends(require_gym_member)
) -> CurrentUser:
    """Admin, owner or coach"""
    if current_user.user_type not in STAFF_TYPES:
        raise AccessDeniedError("Staff access required")
    return current_user


async def require_manager(
        current_user: CurrentUser = Depends(require_gym_member)
) -> CurrentUser:
    """Admin or gym owner"""
    if current_user.user_type not in (UserType.ADMIN, UserType.OWNER):
        raise AccessDeniedError("Owner or admin access required")
    return current_user


# ============================================================================
# Tenant checks
# ============================================================================

def ensure_same_gym(current_user: CurrentUser, gym_id: str) -> None:
    """Admins see every gym; everyone else only their own"""
    if current_user.is_admin:
        return
    if current_user.gym_id != gym_id:
        raise AccessDeniedError("Access denied. You can only access your own gym's schedules.")


def scoped_gym_id(current_user: CurrentUser, requested_gym_id: Optional[str]) -> Optional[str]:
    """Gym filter to apply to list endpoints"""
    if current_user.is_admin:
        return requested_gym_id
    return current_user.gym_id
