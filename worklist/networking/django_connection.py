"""
Django Connection.
HTTP connection for Django REST Framework backends. Injects credentials into
every outgoing request and verifies them whenever they change.
"""
import logging
from enum import Enum
from typing import Dict, Optional

import requests

from .http_connection import HTTPConnection

logger = logging.getLogger('worklist.auth')

Credentials = Dict[str, str]


class AuthenticationType(Enum):
    TOKEN = 'token'
    # Declared for session based backends; no header injection or verification yet.
    SESSION = 'session'


class AuthenticationStatus(Enum):
    UNAUTHENTICATED = 'unauthenticated'
    AUTHENTICATED = 'authenticated'
    INVALID_CREDENTIALS = 'invalid_credentials'


class DjangoConnection(HTTPConnection):
    """
    Authenticated request queue.

    Usage:
        credentials = DjangoConnection.create_credentials(token='abc123')
        connection = DjangoConnection(
            'https://grand-challenge.org/',
            AuthenticationType.TOKEN,
            credentials
        )
        if connection.get_authentication_status() != AuthenticationStatus.AUTHENTICATED:
            ...
    """

    def __init__(
        self,
        base_url: str,
        authentication_type: AuthenticationType,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        max_workers: int = 4,
        timeout: Optional[float] = None,
        probe_path: str = 'api/v1/'
    ):
        """
        Initialize connection and verify the credentials.

        Args:
            base_url: Base URL of the API
            authentication_type: TOKEN or SESSION
            credentials: Credential mapping (see create_credentials)
            session: Optional requests session
            max_workers: Number of concurrent requests
            timeout: Optional per request timeout in seconds
            probe_path: Path requested to verify a token

        Raises:
            ValueError: If token authentication is requested without a token
        """
        super().__init__(base_url, session=session, max_workers=max_workers, timeout=timeout)
        self.authentication_type = authentication_type
        self.probe_path = probe_path
        self._credentials: Credentials = dict(credentials)
        self._status = AuthenticationStatus.UNAUTHENTICATED

        self._setup_connection()

    @staticmethod
    def create_credentials(
        token: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None
    ) -> Credentials:
        """
        Build a credential mapping.

        Either a token, or a username and password pair.
        """
        if token is not None:
            return {'token': token}
        if username is not None and password is not None:
            return {'username': username, 'password': password}
        raise ValueError("Credentials need a token or a username and password")

    def set_credentials(self, credentials: Credentials) -> AuthenticationStatus:
        """
        Replace the credentials.

        Outstanding tasks were built with the old credentials and are
        cancelled, including callbacks that are still running. Returns once
        the new credentials have been verified.

        Returns:
            AuthenticationStatus: Status after verification

        Raises:
            ValueError: If the credentials are unusable; the current ones are kept
        """
        credentials = dict(credentials)
        self._validate_credentials(credentials)

        with self._lock:
            self.cancel_all_tasks()
            self._credentials = credentials
            self._status = AuthenticationStatus.UNAUTHENTICATED
            self._setup_connection()
            return self._status

    def get_authentication_status(self) -> AuthenticationStatus:
        return self._status

    def _authorization_header(self) -> str:
        token = self._credentials['token']
        # A token with a scheme word ("Token abc", "Bearer abc") is sent as given.
        if ' ' in token.strip():
            return token
        return f"Bearer {token}"

    def _modify_request(self, request: requests.Request) -> None:
        with self._lock:
            if self.authentication_type == AuthenticationType.TOKEN:
                request.headers['Authorization'] = self._authorization_header()

    def _validate_credentials(self, credentials: Credentials) -> None:
        if self.authentication_type == AuthenticationType.TOKEN and not credentials.get('token'):
            raise ValueError("No token information available.")

    def _setup_connection(self) -> None:
        self._validate_credentials(self._credentials)

        if self.authentication_type == AuthenticationType.TOKEN:
            self._status = self._verify_token()

        elif self.authentication_type == AuthenticationType.SESSION:
            logger.warning("Session authentication is not supported, requests are sent unauthenticated")

        logger.info(f"Authentication status for {self.base_url}: {self._status.value}")

    def _verify_token(self) -> AuthenticationStatus:
        try:
            # Sent directly: a swap issued from inside a callback must still be verified.
            response = self._send(requests.Request('GET', self.probe_path))
        except requests.exceptions.RequestException as e:
            logger.error(f"Token verification failed: {e}")
            return AuthenticationStatus.INVALID_CREDENTIALS

        if 200 <= response.status_code < 300:
            return AuthenticationStatus.AUTHENTICATED

        if response.status_code in (401, 403):
            logger.error("Invalid token - authentication failed")
        else:
            logger.error(f"Token verification returned HTTP {response.status_code}")
        return AuthenticationStatus.INVALID_CREDENTIALS
