from typing import Any

from keycloak import KeycloakOpenID

from connection_core.settings import app_settings
from connection_core.utils.singleton import SingletonMeta


class KeycloakManager(metaclass=SingletonMeta):
    """
    Singleton manager for Keycloak token validation.

    The engine only consumes already-issued access tokens; it never logs
    users in.
    """

    def __init__(self) -> None:
        self.openid = KeycloakOpenID(
            server_url=f"{app_settings.KEYCLOAK_BASE_URL}/",
            client_id=app_settings.KEYCLOAK_CLIENT_ID,
            realm_name=app_settings.KEYCLOAK_REALM,
        )

    async def decode_token(self, access_token: str) -> dict[str, Any]:
        """
        Validate an access token against the realm keys and return its claims.

        Uses the native async method of python-keycloak so the event loop is
        not blocked while the realm certificates are fetched.

        Raises:
            JWTExpired: If the token has expired.
            KeycloakAuthenticationError: If Keycloak rejects the request.
            ValueError: If the token cannot be decoded.
        """
        return await self.openid.a_decode_token(access_token)
