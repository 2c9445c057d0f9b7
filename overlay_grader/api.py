"""
Client for the remote grading server.

Every call goes through the retry executor. Errors the server marks as
unrecoverable are raised as NonRetriableError so they are not retried.
"""

from typing import Any, Callable

import httpx

from .errors import GradingServerError, NonRetriableError
from .models import GradingReport
from .retry import retry_with_exponential_backoff


class GradingServerClient:
    """
    Thin JSON-over-HTTP client for the grading server's functions.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        client: httpx.Client | None = None,
        timeout_seconds: float = 60.0,
        retry: Callable[..., Any] = retry_with_exponential_backoff,
    ) -> None:
        """
        Initialize the grading server client.

        Args:
            base_url: Grading server root URL.
            token: Value sent verbatim in the Authorization header.
            client: Optional preconfigured httpx client.
            timeout_seconds: Request timeout for the default client.
            retry: Retry executor wrapping each request.
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client = client or httpx.Client(timeout=timeout_seconds)
        self._retry = retry

    def create_submission(self) -> dict[str, Any]:
        return self._post(
            "/functions/v1/autograder-create-submission",
            action="create submission",
        )

    def create_regression_test_run(self, regression_test_id: int) -> dict[str, Any]:
        return self._post(
            f"/functions/v1/autograder-create-regression-test-run/{regression_test_id}",
            action="create regression test run",
        )

    def submit_feedback(
        self, report: GradingReport, regression_test_id: int | None = None
    ) -> dict[str, Any]:
        """
        Submit a grading report.

        Args:
            report: Report to submit.
            regression_test_id: Regression test this run belongs to, if any.

        Returns:
            Decoded JSON success payload.
        """
        params = {}
        if regression_test_id:
            params["autograder_regression_test_id"] = str(regression_test_id)
        return self._post(
            "/functions/v1/autograder-submit-feedback",
            action="submit feedback",
            body=report.model_dump(mode="json", exclude_none=True),
            params=params,
        )

    def close(self) -> None:
        self._client.close()

    def _post(
        self,
        path: str,
        action: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        def attempt() -> dict[str, Any]:
            response = self._client.post(
                f"{self.base_url}{path}",
                json=body,
                params=params or None,
                headers={"Authorization": self.token},
            )
            payload = response.json()
            error = payload.get("error") if isinstance(payload, dict) else None
            if error:
                message = f"Failed to {action}: {error.get('message', '')} {error.get('details', '')}"
                if not error.get("recoverable", False):
                    raise NonRetriableError(message.strip())
                raise GradingServerError(message.strip())
            return payload

        return self._retry(attempt)
