"""Identity capability interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from starlette.requests import Request

    from infrastructure.database.models.user import User


class AuthenticationError(Exception):
    """Credentials were presented but are not acceptable."""

    def __init__(self, detail: str, status_code: int = 401):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class IdentityProvider(ABC):
    """Resolves the user behind an incoming request.

    ``identify`` returns None when the request carries no credentials and
    raises ``AuthenticationError`` when it carries bad ones.
    """

    name: str = "abstract"

    @abstractmethod
    async def identify(self, request: "Request", db: "AsyncSession") -> "User | None":
        ...

    @property
    def supports_sign_in(self) -> bool:
        return True
