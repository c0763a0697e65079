"""
Gmail OAuth 2.0 handler

- Loads client secrets from credentials.json or GOOGLE_CLIENT_* environment variables
- Reuses a stored token.json, refreshing it when expired
- Runs the installed-app consent flow (local browser callback) when needed
- Stores tokens to disk for reuse
"""
import json
import os
from typing import Any, Dict, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ..exceptions import AuthFailedError
from ..utils.config import BridgeConfig, ConfigDefaults
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"


class GmailOAuthHandler:
    """
    Handle Gmail OAuth 2.0 authentication for a single mailbox

    Usage:
        handler = GmailOAuthHandler(config)
        credentials = handler.get_credentials()
    """

    def __init__(self, config: BridgeConfig):
        self.config = config
        self.scopes = list(config.scopes)

    def get_credentials(self) -> Credentials:
        """
        Return authorized credentials, refreshing or re-consenting as needed

        Raises:
            AuthFailedError: If no valid credentials can be obtained
        """
        try:
            credentials = self._load_token()

            if credentials and credentials.valid:
                logger.debug(f"[AUTH] Using cached token from {self.config.token_path}")
                return credentials

            if credentials and credentials.expired and credentials.refresh_token:
                refreshed = self._refresh(credentials)
                if refreshed:
                    return refreshed

            return self.run_consent_flow()

        except AuthFailedError:
            raise
        except Exception as e:
            raise AuthFailedError(f"Authentication failed: {e}", cause=e) from e

    def run_consent_flow(self) -> Credentials:
        """
        Run the browser consent flow and save the resulting token

        Opens the authorization URL and waits for the redirect on a local
        port, for at most ConfigDefaults.OAUTH_CONSENT_TIMEOUT_SECONDS.
        """
        client_config = self._get_client_config()
        flow = InstalledAppFlow.from_client_config(client_config, scopes=self.scopes)

        logger.info("[AUTH] Gmail OAuth authorization required, opening browser...")
        credentials = flow.run_local_server(
            port=self.config.oauth_redirect_port,
            access_type='offline',
            prompt='consent',
            timeout_seconds=ConfigDefaults.OAUTH_CONSENT_TIMEOUT_SECONDS,
            authorization_prompt_message="Open this URL in your browser to authorize: {url}",
            success_message="Authorization successful. You can close this window.",
        )

        if credentials is None:
            raise AuthFailedError("Authorization timed out or was denied")

        self._save_token(credentials)
        logger.info(f"[AUTH] Authentication successful, token saved to {self.config.token_path}")
        return credentials

    # ----------------------------------------------------------
    # Private helpers
    # ----------------------------------------------------------

    def _get_client_config(self) -> Dict[str, Any]:
        """
        Get client configuration for the OAuth flow

        credentials.json wins; otherwise the config is assembled from
        GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and GOOGLE_PROJECT_ID.
        """
        path = self.config.credentials_path
        if path and os.path.exists(path):
            with open(path, 'r') as f:
                return json.load(f)

        client_id = os.getenv('GOOGLE_CLIENT_ID')
        client_secret = os.getenv('GOOGLE_CLIENT_SECRET')
        if not client_id or not client_secret:
            raise AuthFailedError(
                "Missing Google OAuth credentials. Set GOOGLE_CLIENT_ID and "
                f"GOOGLE_CLIENT_SECRET or place a credentials file at {path}."
            )

        return {
            "installed": {
                "client_id": client_id,
                "client_secret": client_secret,
                "project_id": os.getenv('GOOGLE_PROJECT_ID', 'calbridge'),
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [f"http://localhost:{self.config.oauth_redirect_port}/"],
            }
        }

    def _load_token(self) -> Optional[Credentials]:
        token_path = self.config.token_path
        if not os.path.exists(token_path):
            logger.debug(f"[AUTH] Token file not found: {token_path}")
            return None

        try:
            return Credentials.from_authorized_user_file(token_path, self.scopes)
        except (ValueError, json.JSONDecodeError) as e:
            logger.warning(f"[AUTH] Ignoring unreadable token file {token_path}: {e}")
            return None

    def _refresh(self, credentials: Credentials) -> Optional[Credentials]:
        """Refresh an expired token; None means a full re-consent is needed."""
        try:
            credentials.refresh(Request())
        except GoogleAuthError as e:
            logger.warning(f"[AUTH] Token refresh failed, re-running consent: {e}")
            return None

        self._save_token(credentials)
        logger.info(f"[AUTH] Refreshed credentials from {self.config.token_path}")
        return credentials

    def _save_token(self, credentials: Credentials) -> None:
        with open(self.config.token_path, 'w') as f:
            f.write(credentials.to_json())
