import hmac
import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import ReminderConfigurationError, ReminderSettings, get_reminder_settings
from .database import get_db
from .models import Profile

logger = logging.getLogger(__name__)

security = HTTPBearer()

OPERATOR_ROLES = ("counselor", "admin")


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks"""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


async def verify_service_key(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    settings: ReminderSettings = Depends(get_reminder_settings),
) -> None:
    """Only the scheduler (holding the service role key) may start a batch run"""
    if not settings.service_role_key:
        logger.error("❌ SUPABASE_SERVICE_ROLE_KEY not configured")
        raise ReminderConfigurationError(["SUPABASE_SERVICE_ROLE_KEY"])

    if not constant_time_compare(credentials.credentials, settings.service_role_key):
        logger.warning("⚠️ Rejected batch reminder call with an invalid service key")
        raise HTTPException(status_code=401, detail="Invalid service key")


def decode_access_token(token: str, secret: str) -> dict:
    """Verify a hosted-auth access token (HS256) and return its claims"""
    try:
        return jose_jwt.decode(token, secret, algorithms=["HS256"], audience="authenticated")
    except JWTError as e:
        logger.info(f"ℹ️ Access token rejected: {e}")
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token. Please sign in again.",
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    settings: ReminderSettings = Depends(get_reminder_settings),
    db: Session = Depends(get_db),
) -> Profile:
    if not settings.jwt_secret:
        logger.error("❌ SUPABASE_JWT_SECRET not configured")
        raise ReminderConfigurationError(["SUPABASE_JWT_SECRET"])

    claims = decode_access_token(credentials.credentials, settings.jwt_secret)
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(Profile).filter(Profile.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token for unknown profile {user_id}")
        raise HTTPException(status_code=401, detail="User not found")

    return user


async def require_operator(current_user: Profile = Depends(get_current_user)) -> Profile:
    """Counselors and admins manage reminders on a student's behalf"""
    if current_user.user_type not in OPERATOR_ROLES:
        raise HTTPException(status_code=403, detail="Counselor or admin access required")
    return current_user


async def require_admin(current_user: Profile = Depends(get_current_user)) -> Profile:
    if current_user.user_type != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
