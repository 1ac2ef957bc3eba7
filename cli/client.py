"""
BroDesk API Client
==================

Synchronous httpx client for the BroDesk API. Keeps the tokens of the last
login in the session file and publishes sign in / sign out / refresh on a
SessionEventBus, so a SessionContext can be bound to it exactly like it is
bound to the server-side identity provider.
"""

import json
import os
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx

from app.core.enums import AccountRole
from app.modules.auth.session_context import (
    IdentitySession,
    SessionEvent,
    SessionEventBus,
    SessionListener,
)
from cli.config import CLIConfig


class APIError(Exception):
    """Error body returned by the API (or a transport failure)"""

    def __init__(self, message: str, status_code: int = 0, code: str = "ERROR",
                 details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        super().__init__(message)

    @classmethod
    def from_response(cls, response: httpx.Response) -> "APIError":
        try:
            body = response.json()
        except ValueError:
            return cls(response.text or response.reason_phrase, response.status_code)

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return cls(
                error.get("message", "Request failed"),
                response.status_code,
                error.get("code", "ERROR"),
                error.get("details"),
            )
        # FastAPI request validation errors
        detail = body.get("detail") if isinstance(body, dict) else None
        return cls(str(detail or "Request failed"), response.status_code)


class BroDeskClient:
    """Thin wrapper over the HTTP API with local session persistence"""

    def __init__(self, config: CLIConfig, transport: Optional[httpx.BaseTransport] = None):
        self.config = config
        self._http = httpx.Client(
            base_url=config.api_base_url,
            timeout=config.timeout,
            transport=transport,
        )
        self._events = SessionEventBus()
        self.session: Optional[IdentitySession] = self._load_session()

    # ==================== Session persistence ====================

    def _load_session(self) -> Optional[IdentitySession]:
        path = Path(self.config.session_file)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
            data["expires_at"] = datetime.fromisoformat(data["expires_at"])
            return IdentitySession(**data)
        except (ValueError, KeyError, TypeError):
            # Unreadable session file is treated as signed out
            return None

    def _save_session(self, session: IdentitySession) -> None:
        data = asdict(session)
        data["expires_at"] = session.expires_at.isoformat()
        path = Path(self.config.session_file)
        path.write_text(json.dumps(data, indent=2))
        try:
            os.chmod(path, 0o600)
        except OSError:
            pass

    def _clear_session(self) -> None:
        self.session = None
        path = Path(self.config.session_file)
        if path.exists():
            path.unlink()

    def _session_from_tokens(self, data: Dict[str, Any], user_id: str, email: str,
                             session_id: str) -> IdentitySession:
        return IdentitySession(
            user_id=user_id,
            email=email,
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            session_id=session_id,
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )

    # ==================== HTTP ====================

    def _headers(self, session: Optional[IdentitySession] = None) -> Dict[str, str]:
        session = session or self.session
        if session is None:
            return {}
        return {"Authorization": f"Bearer {session.access_token}"}

    def _request(self, method: str, path: str, session: Optional[IdentitySession] = None, **kwargs) -> Any:
        try:
            response = self._http.request(method, path, headers=self._headers(session), **kwargs)
        except httpx.ConnectError:
            raise APIError("Cannot connect to server. Is the backend running?")
        except httpx.TimeoutException:
            raise APIError("Request timed out")

        if response.status_code >= 400:
            raise APIError.from_response(response)
        if not response.content:
            return None
        return response.json()

    # ==================== Identity ====================

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        return self._events.subscribe(listener)

    def register(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/auth/register", json=payload)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        user = data["user"]
        session = self._session_from_tokens(data, user["id"], user["email"], data["session_id"])
        self.session = session
        self._save_session(session)
        self._events.publish(SessionEvent.SIGNED_IN, session)
        return user

    def logout(self) -> Optional[str]:
        """
        Revoke the session on the server and forget it locally.

        The local session is cleared even when the server call fails; the
        server message is returned in that case.
        """
        problem = None
        if self.session is not None:
            try:
                self._request("POST", "/auth/logout")
            except APIError as e:
                problem = e.message
        self._clear_session()
        self._events.publish(SessionEvent.SIGNED_OUT, None)
        return problem

    def refresh(self) -> IdentitySession:
        if self.session is None:
            raise APIError("Not logged in", 401, "INVALID_TOKEN")
        data = self._request("POST", "/auth/refresh", json={"refresh_token": self.session.refresh_token})
        session = self._session_from_tokens(data, self.session.user_id, self.session.email, data["session_id"])
        self.session = session
        self._save_session(session)
        self._events.publish(SessionEvent.TOKEN_REFRESHED, session)
        return session

    def me(self, session: Optional[IdentitySession] = None) -> Dict[str, Any]:
        return self._request("GET", "/auth/me", session=session)

    def fetch_role(self, session: IdentitySession) -> Optional[AccountRole]:
        """Role resolver for SessionContext"""
        role = self.me(session).get("role")
        return AccountRole(role) if role else None

    # ==================== Shared ====================

    def notifications(self, limit: int = 50) -> List[Dict[str, Any]]:
        return self._request("GET", "/notifications", params={"limit": limit})

    def categories(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/categories")

    # ==================== Student ====================

    def submit_complaint(self, title: str, description: str, category: str, priority: str) -> Dict[str, Any]:
        return self._request("POST", "/complaints", json={
            "title": title,
            "description": description,
            "category": category,
            "priority": priority,
        })

    def my_complaints(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/complaints/mine")

    # ==================== Staff ====================

    def assigned_complaints(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/complaints/assigned")

    def assigned_stats(self) -> Dict[str, int]:
        return self._request("GET", "/complaints/assigned/stats")

    def set_status(self, complaint_id: str, status: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/complaints/{complaint_id}/status", json={"status": status})

    # ==================== Admin ====================

    def dashboard_stats(self) -> Dict[str, int]:
        return self._request("GET", "/admin/dashboard/stats")

    def list_users(self, status: Optional[str] = None) -> Dict[str, Any]:
        params = {"status": status} if status else None
        return self._request("GET", "/admin/users", params=params)

    def approve(self, user_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/admin/users/{user_id}/approve")

    def reject(self, user_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/admin/users/{user_id}/reject")

    def list_staff(self) -> Dict[str, Any]:
        return self._request("GET", "/admin/staff")

    def all_complaints(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/admin/complaints")

    def assign(self, complaint_id: str, staff_id: str) -> Dict[str, Any]:
        return self._request("PUT", f"/admin/complaints/{complaint_id}/assignment", json={"staff_id": staff_id})

    def add_category(self, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/admin/categories", json={"name": name, "description": description})

    def delete_category(self, category_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/admin/categories/{category_id}")

    def close(self) -> None:
        self._http.close()
