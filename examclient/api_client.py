"""HTTP transport to the certprep API."""
import logging

import requests

from examclient.auth import CurrentUser, SessionRepository
from examclient.models import (
    ExamPaper,
    GradingResult,
    HeatmapEntry,
    SubmissionPayload,
)

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """Failed request; ``status_code`` is None for network errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ApiClient:
    def __init__(
        self,
        base_url: str,
        repository: SessionRepository,
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.repository = repository
        self.timeout = timeout
        self._http = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        user = self.repository.get_current_user()
        if user is None:
            return {}
        return {"Authorization": f"Bearer {user.token}"}

    def _request(self, method: str, path: str, **kwargs) -> object:
        url = f"{self.base_url}{path}"
        try:
            response = self._http.request(
                method,
                url,
                headers=self._headers(),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.warning(f"{method} {path} failed: {exc}")
            raise ApiError(f"Network error: {exc}") from exc

        if response.status_code == 401:
            # Server no longer accepts the token
            self.repository.sign_out()
        if not response.ok:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise ApiError(f"{method} {path}: {detail}", response.status_code)
        return response.json()

    def login(self, username: str, password: str) -> CurrentUser:
        token = self._request(
            "POST", "/api/auth/login", json={"username": username, "password": password}
        )["access_token"]
        profile = self._http.get(
            f"{self.base_url}/api/auth/me",
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )
        if not profile.ok:
            raise ApiError("Could not load profile", profile.status_code)
        data = profile.json()
        user = CurrentUser(id=int(data["id"]), username=data["username"], token=token)
        self.repository.sign_in(user)
        return user

    def logout(self) -> None:
        try:
            self._request("POST", "/api/auth/logout")
        finally:
            self.repository.sign_out()

    def get_test(self, test_id: str) -> ExamPaper:
        return ExamPaper.from_dict(self._request("GET", f"/api/tests/{test_id}"))

    def submit_exam(self, payload: SubmissionPayload) -> GradingResult:
        data = self._request("POST", "/api/tests/submit", json=payload.to_request())
        return GradingResult.from_response(data)

    def get_attempt(self, attempt_id: str) -> dict:
        return self._request("GET", f"/api/attempts/{attempt_id}")

    def dashboard_stats(self, timezone: str = "+00:00") -> dict:
        return self._request("GET", "/api/dashboard/stats", params={"timezone": timezone})

    def heatmap(self, timezone: str = "+00:00") -> list[HeatmapEntry]:
        entries = self._request("GET", "/api/dashboard/heatmap", params={"timezone": timezone})
        return [HeatmapEntry(date=e["date"], count=int(e["count"])) for e in entries]
