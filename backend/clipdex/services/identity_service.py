"""Sign-in through external identity providers (Discord, Google, Twitch).

The OAuth2 authorization-code flow is handled by Authlib's Starlette
client. The ``state`` it generates is kept in the signed session cookie of
the browser that started the login, so a callback arriving from any other
browser is rejected. Providers differ only in endpoints, scopes and the
shape of the user profile.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx
from authlib.integrations.base_client import MismatchingStateError
from authlib.integrations.starlette_client import OAuth, OAuthError
from starlette.requests import Request

from clipdex.config import settings


class IdentityProviderError(Exception):
    """Token exchange or profile lookup with an identity provider failed."""


class InvalidStateError(IdentityProviderError):
    """The callback's state was not issued to this browser."""


@dataclass
class ProviderProfile:
    """Normalized user profile returned by any provider."""
    account_id: str
    username: str
    display_name: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None


@dataclass
class IdentityProvider:
    id: str
    name: str
    authorize_url: str
    access_token_url: str
    api_base_url: str
    userinfo_path: str
    scope: str
    parse_profile: Callable[[dict], ProviderProfile]
    client_kwargs: Dict[str, Any] = field(default_factory=dict)

    @property
    def client_id(self) -> str:
        return getattr(settings, f"{self.id.upper()}_CLIENT_ID")

    @property
    def client_secret(self) -> str:
        return getattr(settings, f"{self.id.upper()}_CLIENT_SECRET")

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @property
    def redirect_uri(self) -> str:
        return settings.provider_callback_url(self.id)

    def userinfo_headers(self) -> Dict[str, str]:
        # Helix requires the client id alongside the bearer token
        return {"Client-Id": self.client_id} if self.id == "twitch" else {}


def _discord_profile(data: dict) -> ProviderProfile:
    avatar = data.get("avatar")
    return ProviderProfile(
        account_id=str(data["id"]),
        username=data.get("username") or "",
        display_name=data.get("global_name") or data.get("username") or "",
        email=data.get("email") if data.get("verified") else None,
        avatar_url=f"https://cdn.discordapp.com/avatars/{data['id']}/{avatar}.png" if avatar else None
    )


def _google_profile(data: dict) -> ProviderProfile:
    address = data.get("email")
    email = address if data.get("email_verified") else None
    return ProviderProfile(
        account_id=str(data["sub"]),
        username=address.split("@")[0] if address else (data.get("given_name") or ""),
        display_name=data.get("name") or "",
        email=email,
        avatar_url=data.get("picture")
    )


def _twitch_profile(data: dict) -> ProviderProfile:
    # Helix wraps users in a "data" list
    users = data.get("data") or []
    if not users:
        raise IdentityProviderError("Twitch returned no user")
    user = users[0]
    return ProviderProfile(
        account_id=str(user["id"]),
        username=user.get("login") or "",
        display_name=user.get("display_name") or user.get("login") or "",
        email=user.get("email"),
        avatar_url=user.get("profile_image_url")
    )


PROVIDERS: Dict[str, IdentityProvider] = {
    "discord": IdentityProvider(
        id="discord",
        name="Discord",
        authorize_url="https://discord.com/oauth2/authorize",
        access_token_url="https://discord.com/api/oauth2/token",
        api_base_url="https://discord.com/api/",
        userinfo_path="users/@me",
        scope="identify email",
        parse_profile=_discord_profile
    ),
    "google": IdentityProvider(
        id="google",
        name="Google",
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        access_token_url="https://oauth2.googleapis.com/token",
        api_base_url="https://openidconnect.googleapis.com/v1/",
        userinfo_path="userinfo",
        scope="email profile",
        parse_profile=_google_profile
    ),
    "twitch": IdentityProvider(
        id="twitch",
        name="Twitch",
        authorize_url="https://id.twitch.tv/oauth2/authorize",
        access_token_url="https://id.twitch.tv/oauth2/token",
        api_base_url="https://api.twitch.tv/helix/",
        userinfo_path="users",
        scope="user:read:email",
        parse_profile=_twitch_profile,
        client_kwargs={"token_endpoint_auth_method": "client_secret_post"}
    ),
}

oauth = OAuth()
for _provider in PROVIDERS.values():
    oauth.register(
        name=_provider.id,
        client_id=_provider.client_id,
        client_secret=_provider.client_secret,
        authorize_url=_provider.authorize_url,
        access_token_url=_provider.access_token_url,
        api_base_url=_provider.api_base_url,
        client_kwargs={"scope": _provider.scope, **_provider.client_kwargs},
    )


def get_provider(provider_id: str) -> Optional[IdentityProvider]:
    """Return a configured provider, or None if unknown or not configured."""
    provider = PROVIDERS.get(provider_id.lower())
    if provider is None or not provider.enabled:
        return None
    return provider


def enabled_providers() -> List[IdentityProvider]:
    return [p for p in PROVIDERS.values() if p.enabled]


async def authorize_redirect(request: Request, provider: IdentityProvider):
    """Redirect to the consent screen, remembering the state in the session."""
    client = oauth.create_client(provider.id)
    return await client.authorize_redirect(request, provider.redirect_uri)


async def load_userinfo(provider: IdentityProvider, client, token: dict) -> dict:
    """Fetch the raw user profile with an access token."""
    response = await client.get(provider.userinfo_path, token=token, headers=provider.userinfo_headers())
    response.raise_for_status()
    return response.json()


async def fetch_profile(request: Request, provider: IdentityProvider) -> ProviderProfile:
    """
    Complete the callback: check the state, exchange the code, load the profile.

    Raises:
        InvalidStateError: If the state was not issued to this browser
        IdentityProviderError: If the exchange or the profile request fails
    """
    client = oauth.create_client(provider.id)
    try:
        token = await client.authorize_access_token(request)
        data = await load_userinfo(provider, client, token)
    except MismatchingStateError as e:
        raise InvalidStateError("invalid_state") from e
    except OAuthError as e:
        raise IdentityProviderError(f"{provider.name} sign-in failed: {e.error}") from e
    except httpx.HTTPError as e:
        raise IdentityProviderError(f"{provider.name} sign-in failed: {e}") from e

    try:
        return provider.parse_profile(data)
    except (KeyError, ValueError) as e:
        raise IdentityProviderError(f"{provider.name} returned an unexpected profile") from e
