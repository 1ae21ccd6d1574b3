"""Sauce Labs REST client for reading and updating job details."""

import logging
import os
import time
from typing import Any, Protocol
from urllib.parse import urljoin

import requests

from ..models.job_record import RemoteJob

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://saucelabs.com/"


class SauceRestError(OSError):
    """Error talking to the Sauce REST API."""

    def __init__(self, message: str, status_code: int | None = None, retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class RemoteJobGateway(Protocol):
    """The two job operations the reconciler needs from Sauce.

    Both raise an OSError subclass when Sauce is unreachable or the
    credentials are rejected.
    """

    def get_job_details(self, job_id: str) -> RemoteJob:
        ...

    def update_job(self, job_id: str, changes: dict[str, Any]) -> None:
        ...


class SauceRestClient:
    """HTTP client for the Sauce jobs endpoints."""

    def __init__(self, sauce_config: dict):
        # Endpoint: env var takes precedence, as with the Sauce client libraries
        self.base_url = (
            os.environ.get("SAUCE_REST_ENDPOINT")
            or sauce_config.get("base_url")
            or DEFAULT_BASE_URL
        )
        self.username = os.environ.get("SAUCE_USERNAME") or sauce_config.get("username", "")
        self.access_key = os.environ.get("SAUCE_ACCESS_KEY") or sauce_config.get("access_key", "")
        self.timeout = sauce_config.get("timeout", 30)

        retry_config = sauce_config.get("retry", {})
        self.max_attempts = max(1, retry_config.get("max_attempts", 3))
        self.base_delay = retry_config.get("base_delay_seconds", 1.0)
        self.max_delay = retry_config.get("max_delay_seconds", 30.0)

    @property
    def is_configured(self) -> bool:
        """Check if the client has credentials."""
        return bool(self.username) and bool(self.access_key)

    def build_url(self, endpoint: str) -> str:
        """Resolve an endpoint under /rest/ on the configured server."""
        return urljoin(self.base_url, "/rest/" + endpoint)

    def _job_url(self, job_id: str) -> str:
        return self.build_url(f"v1/{self.username}/jobs/{job_id}")

    def get_job_details(self, job_id: str) -> RemoteJob:
        """Fetch the current details of a job.

        Raises:
            SauceRestError: On non-retryable errors or retry exhaustion
        """
        response = self._request("GET", self._job_url(job_id))
        try:
            data = response.json()
        except ValueError as e:
            raise SauceRestError(f"Invalid job details for {job_id}: {e}") from e
        if not isinstance(data, dict):
            raise SauceRestError(
                f"Invalid job details for {job_id}: expected an object, got {type(data).__name__}"
            )
        return RemoteJob.from_json(data)

    def update_job(self, job_id: str, changes: dict[str, Any]) -> None:
        """Apply a partial update to a job.

        Args:
            job_id: Sauce session id
            changes: Changeset keyed by Sauce field name
                ("passed", "name", "build", "public", "custom-data")

        Raises:
            SauceRestError: On non-retryable errors or retry exhaustion
        """
        self._request("PUT", self._job_url(job_id), json=changes)

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        if not self.is_configured:
            raise SauceRestError("Sauce credentials not configured", retryable=False)

        last_error = None
        for attempt in range(self.max_attempts):
            try:
                response = requests.request(
                    method,
                    url,
                    auth=(self.username, self.access_key),
                    timeout=self.timeout,
                    **kwargs,
                )

                if response.status_code == 200:
                    return response

                if response.status_code in (400, 401, 403, 404):
                    raise SauceRestError(
                        f"API error {response.status_code}: {response.text[:200]}",
                        status_code=response.status_code,
                        retryable=False,
                    )

                # Retryable errors: 429, 5xx
                last_error = SauceRestError(
                    f"API error {response.status_code}: {response.text[:200]}",
                    status_code=response.status_code,
                    retryable=True,
                )

            except requests.exceptions.Timeout:
                last_error = SauceRestError("Request timed out", retryable=True)
            except requests.exceptions.ConnectionError:
                last_error = SauceRestError("Connection failed", retryable=True)
            except SauceRestError:
                raise
            except requests.exceptions.RequestException as e:
                raise SauceRestError(f"Unexpected error: {e}", retryable=False) from e

            # Wait before retry with exponential backoff
            if attempt < self.max_attempts - 1:
                delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                logger.warning(
                    f"Sauce request {method} {url} failed (attempt {attempt + 1}/{self.max_attempts}): "
                    f"{last_error}. Retrying in {delay:.1f}s"
                )
                time.sleep(delay)

        raise last_error
