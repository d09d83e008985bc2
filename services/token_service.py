from datetime import datetime, timezone, timedelta
from jose import jwt
from core.config import settings


class TokenService:

    @staticmethod
    def create_access_token(email: str, user_id: int, role: str, expires_delta: timedelta = None) -> str:
        """
        Creates a signed JWT access token.

        Args:
            email: User's email (``sub`` claim)
            user_id: User's ID
            role: User's role
            expires_delta: Lifetime (default: ACCESS_TOKEN_EXPIRE_MINUTES)
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        payload = {
            "sub": email,
            "id": user_id,
            "role": role,
            "type": "access",
            "exp": datetime.now(timezone.utc) + expires_delta
        }

        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def create_tokens(email: str, user_id: int, role: str) -> dict:
        return {
            "access_token": TokenService.create_access_token(email, user_id, role),
            "token_type": "bearer"
        }
