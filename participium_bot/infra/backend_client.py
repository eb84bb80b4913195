# participium_bot/infra/backend_client.py
"""
Participium backend REST client.

Implements the ``UserDirectory`` and ``ReportService`` ports over HTTP.

Endpoints (relative to ``backend_api_url``):
- GET  /telegram/users/{username}  → citizen lookup (404 = not registered)
- POST /telegram/link              → {"telegramUsername", "code"}
- POST /telegram/unlink            → {"userId"}
- POST /reports                    → report payload + {"userId"} → {"id"}

Status mapping for report creation:
- 400 / 422  → ReportValidationError (message from ``message`` / ``error``)
- 401        → UnauthorizedError
- 403        → InsufficientRightsError
- 404        → NotFoundError
- other / network / timeout → ReportError (unspecified)
"""
from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from participium_bot.core.engine.domain import BackendUser, CreateReportRequest, LinkResult
from participium_bot.core.engine.errors import (
    InsufficientRightsError,
    LinkError,
    NotFoundError,
    ReportError,
    ReportValidationError,
    UnauthorizedError,
)
from participium_bot.infra.http_client import get_backend_session
from participium_bot.infra.logging_config import get_logger

logger = get_logger(__name__)


def _error_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


def report_error_for_status(status: int, body: Any) -> ReportError:
    """Translate a failed backend response into the submission taxonomy."""
    message = _error_message(body, f"Backend returned status {status}")
    if status in (400, 422):
        return ReportValidationError(message)
    if status == 401:
        return UnauthorizedError(message)
    if status == 403:
        return InsufficientRightsError(message)
    if status == 404:
        return NotFoundError(message)
    return ReportError(message)


def _parse_user(body: dict) -> BackendUser:
    confirmed = body.get("telegramLinkConfirmed", body.get("telegram_link_confirmed", False))
    return BackendUser(
        id=int(body["id"]),
        username=str(body.get("telegramUsername") or body.get("username") or ""),
        telegram_link_confirmed=bool(confirmed),
    )


class ParticipiumBackendClient:
    """HTTP implementation of the user-directory and report-creation ports."""

    def __init__(self, base_url: str, token: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _request(self, method: str, path: str, payload: dict | None = None) -> tuple[int, Any]:
        """
        Perform one request and return ``(status, parsed_json_or_None)``.

        Raises:
            ReportError: network failure or timeout
        """
        session = get_backend_session(self.token)
        try:
            async with session.request(method, self._url(path), json=payload) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None
                return resp.status, body
        except TimeoutError as exc:
            logger.warning(f"Backend {method} {path} timed out")
            raise ReportError("Backend request timed out") from exc
        except aiohttp.ClientError as exc:
            logger.warning(f"Backend {method} {path} failed: {exc}")
            raise ReportError(f"Backend unreachable: {exc}") from exc

    # ------------------------------------------------------------------
    # UserDirectory
    # ------------------------------------------------------------------

    async def find_by_username(self, username: str) -> Optional[BackendUser]:
        status, body = await self._request("GET", f"/telegram/users/{quote(username.lower())}")
        if status == 404:
            return None
        if status != 200 or not isinstance(body, dict):
            raise report_error_for_status(status, body)
        try:
            return _parse_user(body)
        except (KeyError, TypeError, ValueError) as exc:
            raise ReportError(f"Malformed user payload: {exc}") from exc

    async def verify_and_link(self, username: str, code: str) -> LinkResult:
        try:
            status, body = await self._request(
                "POST", "/telegram/link", {"telegramUsername": username.lower(), "code": code}
            )
        except ReportError as exc:
            raise LinkError(str(exc)) from exc

        if status not in (200, 201) or not isinstance(body, dict):
            raise LinkError(_error_message(body, f"Link request failed with status {status}"))
        if not body.get("success", True):
            raise LinkError(_error_message(body, "Link request rejected"))
        return LinkResult(success=True, message=_error_message(body, "Telegram account linked successfully"))

    async def unlink(self, user_id: int) -> LinkResult:
        status, body = await self._request("POST", "/telegram/unlink", {"userId": user_id})
        if status in (200, 201) and isinstance(body, dict):
            return LinkResult(
                success=bool(body.get("success", True)),
                message=_error_message(body, "Telegram account unlinked"),
            )
        if status in (400, 404, 409):
            return LinkResult(success=False, message=_error_message(body, "Account is not linked"))
        raise report_error_for_status(status, body)

    # ------------------------------------------------------------------
    # ReportService
    # ------------------------------------------------------------------

    async def create_report(self, request: CreateReportRequest, user_id: int) -> int:
        payload = request.to_payload()
        payload["userId"] = user_id

        status, body = await self._request("POST", "/reports", payload)
        if status not in (200, 201):
            error = report_error_for_status(status, body)
            logger.warning(f"Report creation rejected: status={status}, kind={error.kind}")
            raise error

        report = body.get("report", body) if isinstance(body, dict) else None
        try:
            return int(report["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ReportError(f"Malformed report creation response: {exc}") from exc
