"""OAuth helpers for connecting a YouTube channel.

The consent screen, code exchange and token refresh are delegated to
google-auth-oauthlib / google-auth; this module only wires them to the
application's client credentials and callback URL.
"""

from datetime import datetime
from typing import Optional

from google_auth_oauthlib.flow import Flow
from google.oauth2.credentials import Credentials

from clipdex.config import settings

AUTH_URI = 'https://accounts.google.com/o/oauth2/auth'
TOKEN_URI = 'https://oauth2.googleapis.com/token'

SCOPES = [
    'https://www.googleapis.com/auth/youtube.upload',
    'https://www.googleapis.com/auth/youtube.readonly',
    # videos.delete needs a full-access scope
    'https://www.googleapis.com/auth/youtube.force-ssl',
]


def _client_config() -> dict:
    return {
        'web': {
            'client_id': settings.GOOGLE_CLIENT_ID,
            'client_secret': settings.GOOGLE_CLIENT_SECRET,
            'auth_uri': AUTH_URI,
            'token_uri': TOKEN_URI,
            'redirect_uris': [settings.platform_callback_url],
        }
    }


def build_flow() -> Flow:
    """Create an OAuth flow bound to the platform callback URL."""
    flow = Flow.from_client_config(
        _client_config(),
        scopes=SCOPES,
        redirect_uri=settings.platform_callback_url
    )
    # The callback runs in a different request, so no PKCE verifier survives
    flow.autogenerate_code_verifier = False
    flow.code_verifier = None
    return flow


def get_authorization_url(state: str) -> str:
    """
    Build the Google consent-screen URL.

    Args:
        state: Signed state carrying the user id and platform

    Returns:
        URL to redirect the browser to
    """
    flow = build_flow()
    url, _ = flow.authorization_url(
        access_type='offline',
        prompt='consent',
        include_granted_scopes='true',
        state=state
    )
    return url


def exchange_code(code: str) -> Credentials:
    """Exchange an authorization code for credentials."""
    flow = build_flow()
    flow.fetch_token(code=code)
    return flow.credentials


def credentials_from_tokens(
    access_token: str,
    refresh_token: Optional[str] = None,
    expires_at: Optional[datetime] = None
) -> Credentials:
    """
    Rebuild credentials from stored tokens.

    With a refresh token and client secret present, google-auth refreshes an
    expired access token on the next API call.
    """
    return Credentials(
        token=access_token,
        refresh_token=refresh_token,
        token_uri=TOKEN_URI,
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        scopes=SCOPES,
        expiry=expires_at
    )
