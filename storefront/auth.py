# auth.py
"""
Bearer token verification.

Accounts, login and token issuing live in the session service; this
backend only checks the JWT it hands out and reads the user id from it.
"""
import uuid
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from storefront.settings import settings

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


class TokenData(BaseModel):
    """Schema for data inside the JWT."""
    user_id: Optional[uuid.UUID] = None


def decode_token(token: str) -> TokenData:
    """Decodes a JWT and extracts the user id, raising 401 on any problem."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        user_id = payload.get("user_id") or payload.get("sub")
        if user_id is None:
            raise credentials_exception
        return TokenData(user_id=uuid.UUID(str(user_id)))
    except (JWTError, ValueError) as e:
        logger.warning(f"Invalid JWT decode attempt: {e}")
        raise credentials_exception


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> uuid.UUID:
    """Dependency returning the id of the user the bearer token belongs to."""
    return decode_token(token).user_id
