"""
movieshelf/client/api_client.py

Client of the movieshelf server as used by the app: account handling and rating
upload. Keeps the bearer token of the logged in user.
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from dotenv import load_dotenv


DEFAULT_API_URL = "http://localhost:3000/api"
DEFAULT_TIMEOUT = 10
NETWORK_ERROR = "Network error. Is the server running?"

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    success: bool
    user: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class MovieShelfAPIClient:
    """
    Parameters
    ----------
    base_url : str
        Root of the server API, including the /api prefix.
    session : requests.Session, optional
        Session to reuse, mainly for tests.
    token : str, optional
        Previously stored access token.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        session: Optional[requests.Session] = None,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.token = token
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "MovieShelfAPIClient":
        load_dotenv()
        return cls(os.getenv("MOVIESHELF_API_URL", DEFAULT_API_URL))

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def logout(self) -> None:
        self.token = None

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    @staticmethod
    def _error_message(resp: requests.Response, default: str) -> str:
        try:
            body = resp.json()
        except ValueError:
            return default
        if isinstance(body, dict) and isinstance(body.get("detail"), str):
            return body["detail"]
        return default

    def _authenticate(self, path: str, payload: Dict[str, Any], default_error: str) -> AuthResult:
        try:
            resp = self.session.post(self._url(path), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", path, e)
            return AuthResult(success=False, error=NETWORK_ERROR)

        if not resp.ok:
            return AuthResult(success=False, error=self._error_message(resp, default_error))

        try:
            data = resp.json()
        except ValueError:
            logger.warning("Server answered %s with a non JSON body", path)
            return AuthResult(success=False, error=default_error)

        if not isinstance(data, dict) or not data.get("token"):
            logger.warning("Server answered %s without a token", path)
            return AuthResult(success=False, error=default_error)

        self.token = data["token"]
        return AuthResult(success=True, user=data.get("user"))

    def register(self, name: str, email: str, password: str) -> AuthResult:
        '''
        Creates an account on the server and keeps the returned token.
        Failures are reported in the result, never raised.
        '''
        return self._authenticate(
            "/auth/register",
            {"name": name, "email": email, "password": password},
            "Registration failed",
        )

    def login(self, email: str, password: str) -> AuthResult:
        return self._authenticate(
            "/auth/login",
            {"email": email, "password": password},
            "Login failed",
        )

    def get_current_user(self) -> Optional[Dict[str, Any]]:
        '''
        Returns the user of the stored token, or None if there is no token or the server
        did not accept it.
        '''
        if not self.token:
            return None
        try:
            resp = self.session.get(self._url("/auth/me"), headers=self._auth_headers(), timeout=self.timeout)
            resp.raise_for_status()
            return resp.json().get("user")
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.warning("Could not load current user: %s", e)
            return None

    def save_rating(
        self,
        tmdb_id: int,
        rating: int,
        review: Optional[str] = None,
        title: Optional[str] = None,
        poster_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        '''
        Uploads a rating for the logged in user.

        Raises
        ------
        PermissionError
            If no token is stored.
        requests.RequestException
            On network errors or non 2xx answers.
        '''
        if not self.token:
            raise PermissionError("Not logged in")

        resp = self.session.post(
            self._url("/ratings"),
            json={
                "tmdb_id": tmdb_id,
                "rating": rating,
                "review": review,
                "title": title,
                "poster_path": poster_path,
            },
            headers=self._auth_headers(),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()
