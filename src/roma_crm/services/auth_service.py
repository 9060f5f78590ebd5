"""JWT verification for staff sessions.

Tokens are minted by the identity provider with the shared secret;
``create_access_token`` exists for scripts and tests.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.app.config import get_settings
from roma_crm.domain.models import User

settings = get_settings()

TOKEN_LIFETIME_MINUTES = 60


def create_access_token(user_id: str, organization_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=TOKEN_LIFETIME_MINUTES)
    payload = {"sub": user_id, "org": organization_id, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)
