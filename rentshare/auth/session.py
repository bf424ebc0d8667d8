"""
Authentication session management.
Signs users in against the backend auth endpoints and gates the Orders page
on a valid session.
"""

import requests
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, MutableMapping, Optional

logger = logging.getLogger(__name__)

SESSION_KEY = "user_session"


@dataclass
class UserSession:
    """Signed-in identity handed to the page."""
    user_id: str
    email: Optional[str]
    access_token: str
    refresh_token: Optional[str] = None


class AuthClient:
    """Client for the backend auth (GoTrue) endpoints."""

    def __init__(self, url: str, anon_key: str, timeout: int = 30):
        self.base_url = url.rstrip('/') + '/auth/v1/'
        self.anon_key = anon_key
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'apikey': anon_key,
            'Accept': 'application/json',
        })
        self._lock = threading.Lock()

    def _post(self, endpoint: str, payload: Dict[str, Any], params: Optional[Dict[str, str]] = None,
              access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
        headers = {'Authorization': f"Bearer {access_token}"} if access_token else None
        try:
            with self._lock:
                response = self.session.post(
                    self.base_url + endpoint,
                    json=payload,
                    params=params,
                    headers=headers,
                    timeout=self.timeout
                )
            response.raise_for_status()
            return response.json() if response.content else {}
        except requests.exceptions.RequestException as e:
            logger.error(f"Auth error ({endpoint}): {e}")
            return None
        except ValueError as e:
            logger.error(f"Auth returned invalid JSON ({endpoint}): {e}")
            return None

    @staticmethod
    def _session_from_token(data: Dict[str, Any]) -> Optional[UserSession]:
        user = data.get('user') or {}
        if not user.get('id') or not data.get('access_token'):
            return None
        return UserSession(
            user_id=str(user['id']),
            email=user.get('email'),
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token')
        )

    def sign_in(self, email: str, password: str) -> Optional[UserSession]:
        """Password sign-in. Returns None if the credentials are rejected."""
        logger.info(f"Signing in {email}...")
        data = self._post('token', {'email': email, 'password': password},
                          params={'grant_type': 'password'})
        if data is None:
            return None

        session = self._session_from_token(data)
        if session:
            logger.info(f"Signed in as {session.user_id}")
        else:
            logger.error("Sign-in response did not contain a user session")
        return session

    def refresh(self, refresh_token: str) -> Optional[UserSession]:
        """Exchange a refresh token for a new session."""
        data = self._post('token', {'refresh_token': refresh_token},
                          params={'grant_type': 'refresh_token'})
        if data is None:
            return None
        return self._session_from_token(data)

    def get_user(self, access_token: str) -> Optional[UserSession]:
        """Validate an access token and return the session it belongs to."""
        try:
            with self._lock:
                response = self.session.get(
                    self.base_url + 'user',
                    headers={'Authorization': f"Bearer {access_token}"},
                    timeout=self.timeout
                )
            response.raise_for_status()
            user = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Session check failed: {e}")
            return None
        except ValueError as e:
            logger.error(f"Auth returned invalid JSON (user): {e}")
            return None

        if not user.get('id'):
            return None
        return UserSession(user_id=str(user['id']), email=user.get('email'), access_token=access_token)

    def sign_out(self, access_token: str) -> bool:
        return self._post('logout', {}, access_token=access_token) is not None


def resolve_session(state: MutableMapping[str, Any], auth: AuthClient) -> Optional[UserSession]:
    """
    Auth gate: return the current session, or None if the user must sign in.

    The stored session is confirmed against the backend; an expired access
    token is refreshed once. A session that cannot be confirmed is dropped
    from `state`.
    """
    stored = state.get(SESSION_KEY)
    if not isinstance(stored, UserSession):
        return None

    current = auth.get_user(stored.access_token)
    if current:
        current.refresh_token = stored.refresh_token
        state[SESSION_KEY] = current
        return current

    if stored.refresh_token:
        refreshed = auth.refresh(stored.refresh_token)
        if refreshed:
            logger.info(f"Session refreshed for {refreshed.user_id}")
            state[SESSION_KEY] = refreshed
            return refreshed

    logger.info("Stored session is no longer valid")
    state.pop(SESSION_KEY, None)
    return None


class SessionRenewer:
    """
    Token refresher for BackendClient.

    Renews the given session in place, so every holder of the UserSession
    sees the new tokens. Once renewal fails the session is marked expired
    and the user has to sign in again.
    """

    def __init__(self, session: UserSession, auth: AuthClient):
        self.session = session
        self.auth = auth
        self.expired = False
        self._lock = threading.Lock()

    def __call__(self) -> Optional[str]:
        with self._lock:
            if self.expired:
                return None

            refreshed = None
            if self.session.refresh_token:
                refreshed = self.auth.refresh(self.session.refresh_token)

            if refreshed is None:
                logger.warning(f"Session for {self.session.user_id} expired and could not be renewed")
                self.expired = True
                return None

            self.session.access_token = refreshed.access_token
            self.session.refresh_token = refreshed.refresh_token or self.session.refresh_token
            logger.info(f"Session renewed for {self.session.user_id}")
            return self.session.access_token


def store_session(state: MutableMapping[str, Any], session: UserSession) -> None:
    state[SESSION_KEY] = session


def clear_session(state: MutableMapping[str, Any]) -> None:
    state.pop(SESSION_KEY, None)


def create_auth_client_from_config() -> AuthClient:
    """Create AuthClient from the backend section of the config."""
    from ..core.config import get_config

    config = get_config()
    return AuthClient(
        url=config.get('backend', 'url'),
        anon_key=config.get('backend', 'anon_key', default=''),
        timeout=config.get_int('backend', 'timeout', default=30)
    )
