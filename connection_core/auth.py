from typing import Any

from fastapi.security.utils import get_authorization_scheme_param
from jwcrypto.jwt import JWTExpired
from keycloak.exceptions import KeycloakAuthenticationError
from starlette.authentication import (
    AuthCredentials,
    AuthenticationBackend,
)
from starlette.authentication import (
    AuthenticationError as StarletteAuthenticationError,
)
from starlette.requests import HTTPConnection
from starlette.responses import JSONResponse

from connection_core.logging import logger
from connection_core.managers.keycloak_manager import KeycloakManager
from connection_core.schemas.errors import (
    ErrorCode,
    ErrorEnvelope,
    HTTPErrorResponse,
)
from connection_core.schemas.user import UserModel
from connection_core.settings import app_settings


class AuthenticationError(StarletteAuthenticationError):
    """
    Authentication failure with a machine-readable reason.

    Attributes:
        reason: Error code (e.g. 'token_expired', 'invalid_credentials')
        detail: Human-readable error details
    """

    def __init__(self, reason: str, detail: str) -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}")


class AuthBackend(AuthenticationBackend):  # type: ignore[misc]
    """
    Authentication backend validating Keycloak bearer tokens.

    Requests without a token pass through unauthenticated; the engine then
    refuses them with ``UnauthenticatedError`` before touching the store.
    A token that is present but invalid fails the request immediately.

    Attributes:
        excluded_paths: Paths that bypass authentication entirely.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.excluded_paths = app_settings.EXCLUDED_PATHS

    async def authenticate(self, request):  # type: ignore[no-untyped-def]
        """
        Decode the bearer token of an HTTP request into a UserModel.

        Returns:
            Tuple of (AuthCredentials, UserModel) on success, None when the
            path is excluded or no token was sent

        Raises:
            AuthenticationError: When the supplied token is rejected
        """
        if self.excluded_paths.match(request.url.path):
            return

        scheme, access_token = get_authorization_scheme_param(
            request.headers.get("authorization", "")
        )
        if not access_token or scheme.lower() != "bearer":
            return

        try:
            user_data = await KeycloakManager().decode_token(access_token)
            user: UserModel = UserModel(**user_data)
            return AuthCredentials(user.roles), user

        except JWTExpired as ex:
            logger.error(f"JWT token expired: {ex}")
            raise AuthenticationError("token_expired", str(ex))

        except KeycloakAuthenticationError as ex:
            logger.error(f"Invalid credentials: {ex}")
            raise AuthenticationError("invalid_credentials", str(ex))

        except (ValueError, KeyError) as ex:
            logger.error(f"Error occurred while decode auth token: {ex}")
            raise AuthenticationError("token_decode_error", str(ex))


def on_auth_error(
    conn: HTTPConnection, exc: StarletteAuthenticationError
) -> JSONResponse:
    """Render a rejected token with the standard error envelope."""
    body = HTTPErrorResponse(
        error=ErrorEnvelope(
            code=ErrorCode.UNAUTHENTICATED,
            msg="Invalid or expired access token",
            details={"reason": getattr(exc, "reason", "invalid_token")},
        )
    )
    return JSONResponse(
        status_code=401,
        content=body.model_dump(),
        headers={"WWW-Authenticate": "Bearer"},
    )
