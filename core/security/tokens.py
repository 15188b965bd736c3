"""
JWT token service for authentication.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


@dataclass
class TokenPayload:
    """JWT token payload structure."""

    sub: str  # Subject (user ID)
    exp: datetime
    iat: datetime
    type: str  # "access" or "refresh"
    email: str | None = None
    role: str | None = None


class TokenService:
    """Service for creating and validating JWT tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 30,
        refresh_token_expire_days: int = 7,
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._access_token_expire_minutes = access_token_expire_minutes
        self._refresh_token_expire_days = refresh_token_expire_days

    @property
    def access_token_lifetime_seconds(self) -> int:
        return self._access_token_expire_minutes * 60

    def _encode(self, claims: dict, lifetime: timedelta) -> str:
        now = datetime.now(UTC)
        payload = {**claims, "iat": now, "exp": now + lifetime}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def create_access_token(
        self,
        user_id: str,
        email: str | None = None,
        role: str | None = None,
    ) -> str:
        """
        Create an access token.

        Args:
            user_id: User ID to encode in the token
            email: Optional email to include
            role: Optional role to include

        Returns:
            Encoded JWT access token
        """
        claims = {"sub": str(user_id), "type": ACCESS_TOKEN}
        if email:
            claims["email"] = email
        if role:
            claims["role"] = role
        return self._encode(claims, timedelta(minutes=self._access_token_expire_minutes))

    def create_refresh_token(self, user_id: str) -> str:
        """Create a refresh token."""
        return self._encode(
            {"sub": str(user_id), "type": REFRESH_TOKEN},
            timedelta(days=self._refresh_token_expire_days),
        )

    def create_token_pair(
        self,
        user_id: str,
        email: str | None = None,
        role: str | None = None,
    ) -> tuple[str, str]:
        """Create both access and refresh tokens as ``(access, refresh)``."""
        return (
            self.create_access_token(user_id, email, role),
            self.create_refresh_token(user_id),
        )

    def decode_token(self, token: str) -> TokenPayload | None:
        """
        Decode and validate a JWT token.

        Returns:
            TokenPayload if valid, None if invalid, expired or missing claims
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except JWTError:
            return None

        if any(claim not in payload for claim in ("sub", "exp", "type")):
            return None

        return TokenPayload(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
            iat=datetime.fromtimestamp(payload.get("iat", 0), tz=UTC),
            type=payload["type"],
            email=payload.get("email"),
            role=payload.get("role"),
        )

    def _verify(self, token: str, token_type: str) -> TokenPayload | None:
        payload = self.decode_token(token)
        if payload and payload.type == token_type:
            return payload
        return None

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """Return the payload of a valid access token, else None."""
        return self._verify(token, ACCESS_TOKEN)

    def verify_refresh_token(self, token: str) -> TokenPayload | None:
        """Return the payload of a valid refresh token, else None."""
        return self._verify(token, REFRESH_TOKEN)
