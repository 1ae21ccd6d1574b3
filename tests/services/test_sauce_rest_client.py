"""Unit tests for the Sauce REST client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from sauce_reconcile.models.job_record import RemoteJob
from sauce_reconcile.services.log_source import TextLogSource
from sauce_reconcile.services.reconciliation_engine import FINISH_MESSAGE, ReconciliationEngine
from sauce_reconcile.services.sauce_rest_client import SauceRestClient, SauceRestError
from tests.helpers.fakes import RecordingRun


@pytest.fixture
def sauce_config():
    return {
        "base_url": "https://api.us-west-1.saucelabs.com/",
        "username": "ci-bot",
        "access_key": "secret-key",
        "timeout": 10,
        "retry": {
            "max_attempts": 2,
            "base_delay_seconds": 0.01,
            "max_delay_seconds": 0.05,
        },
    }


@pytest.fixture
def client(sauce_config):
    with patch.dict("os.environ", {}, clear=True):
        return SauceRestClient(sauce_config)


def _response(status_code, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.text = text
    return response


class TestSauceRestClientInit:

    def test_is_configured_with_credentials(self, client):
        assert client.is_configured is True

    def test_is_not_configured_without_credentials(self):
        with patch.dict("os.environ", {}, clear=True):
            assert SauceRestClient({}).is_configured is False

    def test_env_credentials_take_precedence(self, sauce_config):
        env = {"SAUCE_USERNAME": "env-user", "SAUCE_ACCESS_KEY": "env-key"}
        with patch.dict("os.environ", env, clear=True):
            client = SauceRestClient(sauce_config)
        assert client.username == "env-user"
        assert client.access_key == "env-key"

    def test_env_endpoint_takes_precedence(self, sauce_config):
        with patch.dict("os.environ", {"SAUCE_REST_ENDPOINT": "https://eu-central-1.saucelabs.com/"}, clear=True):
            client = SauceRestClient(sauce_config)
        assert client.base_url == "https://eu-central-1.saucelabs.com/"

    def test_default_endpoint(self):
        with patch.dict("os.environ", {}, clear=True):
            assert SauceRestClient({}).base_url == "https://saucelabs.com/"

    def test_urls_are_rooted_at_rest(self, sauce_config):
        sauce_config["base_url"] = "https://saucelabs.com/some/path/"
        with patch.dict("os.environ", {}, clear=True):
            client = SauceRestClient(sauce_config)
        assert client.build_url("v1/ci-bot/jobs/abc") == "https://saucelabs.com/rest/v1/ci-bot/jobs/abc"


class TestGetJobDetails:

    def test_successful_lookup(self, client):
        payload = {"id": "abc123", "name": "LoginTest", "passed": True, "custom-data": {"k": "v"}}
        with patch("requests.request", return_value=_response(200, payload)) as mock_request:
            job = client.get_job_details("abc123")

        assert job == RemoteJob(id="abc123", name="LoginTest", passed=True, custom_data={"k": "v"})
        args, kwargs = mock_request.call_args
        assert args == ("GET", "https://api.us-west-1.saucelabs.com/rest/v1/ci-bot/jobs/abc123")
        assert kwargs["auth"] == ("ci-bot", "secret-key")
        assert kwargs["timeout"] == 10

    def test_invalid_json_raises(self, client):
        response = _response(200)
        response.json.side_effect = ValueError("no json")
        with patch("requests.request", return_value=response):
            with pytest.raises(SauceRestError, match="Invalid job details"):
                client.get_job_details("abc123")

    @pytest.mark.parametrize("payload", [None, [], "abc123"])
    def test_non_object_body_raises(self, client, payload):
        with patch("requests.request", return_value=_response(200, payload)):
            with pytest.raises(SauceRestError, match="expected an object"):
                client.get_job_details("abc123")

    def test_non_object_custom_data_is_ignored(self, client):
        payload = {"id": "abc123", "name": "LoginTest", "custom-data": ["not", "a", "dict"]}
        with patch("requests.request", return_value=_response(200, payload)):
            job = client.get_job_details("abc123")
        assert job == RemoteJob(id="abc123", name="LoginTest")

    def test_null_body_does_not_abort_reconciliation(self, client):
        run = RecordingRun()
        with patch("requests.request", return_value=_response(200, None)):
            result = ReconciliationEngine(client).reconcile(
                run, {}, TextLogSource("SauceOnDemandSessionID=abc123 job-name=LoginTest"), None
            )
        assert result.jobs["abc123"].name == "LoginTest"
        assert FINISH_MESSAGE in run.messages

    def test_not_configured_raises_without_request(self):
        with patch.dict("os.environ", {}, clear=True):
            client = SauceRestClient({})
        with patch("requests.request") as mock_request:
            with pytest.raises(SauceRestError, match="not configured"):
                client.get_job_details("abc123")
        mock_request.assert_not_called()

    def test_error_is_an_oserror(self, client):
        with patch("requests.request", return_value=_response(401, text="Unauthorized")):
            with pytest.raises(OSError):
                client.get_job_details("abc123")


class TestUpdateJob:

    def test_sends_changeset_as_json(self, client):
        changes = {"passed": True, "name": "LoginTest", "build": "my-job-42"}
        with patch("requests.request", return_value=_response(200, {})) as mock_request:
            client.update_job("abc123", changes)

        args, kwargs = mock_request.call_args
        assert args[0] == "PUT"
        assert kwargs["json"] == changes

    def test_non_retryable_error_raises_immediately(self, client):
        with patch("requests.request", return_value=_response(403, text="Forbidden")) as mock_request:
            with pytest.raises(SauceRestError) as exc_info:
                client.update_job("abc123", {"name": "x"})
        assert exc_info.value.retryable is False
        assert exc_info.value.status_code == 403
        assert mock_request.call_count == 1


class TestRetries:

    def test_server_error_is_retried_then_succeeds(self, client):
        responses = [_response(503, text="busy"), _response(200, {})]
        with patch("requests.request", side_effect=responses) as mock_request, \
                patch("time.sleep"):
            client.update_job("abc123", {"name": "x"})
        assert mock_request.call_count == 2

    def test_retry_exhaustion_raises_last_error(self, client):
        with patch("requests.request", return_value=_response(429, text="slow down")), \
                patch("time.sleep"):
            with pytest.raises(SauceRestError) as exc_info:
                client.update_job("abc123", {"name": "x"})
        assert exc_info.value.status_code == 429
        assert exc_info.value.retryable is True

    def test_timeout_is_retried(self, client):
        with patch("requests.request", side_effect=requests.exceptions.Timeout()) as mock_request, \
                patch("time.sleep"):
            with pytest.raises(SauceRestError, match="timed out"):
                client.get_job_details("abc123")
        assert mock_request.call_count == 2

    def test_connection_error_is_retried(self, client):
        with patch("requests.request", side_effect=requests.exceptions.ConnectionError()), \
                patch("time.sleep"):
            with pytest.raises(SauceRestError, match="Connection failed"):
                client.get_job_details("abc123")

    def test_other_request_errors_are_wrapped(self, client):
        with patch("requests.request", side_effect=requests.exceptions.InvalidURL("bad")):
            with pytest.raises(SauceRestError, match="Unexpected error"):
                client.get_job_details("abc123")
