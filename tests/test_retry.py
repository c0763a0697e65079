"""
Tests for Retry Logic Utilities
"""
import pytest
from unittest.mock import Mock
from googleapiclient.errors import HttpError

from calbridge.utils.retry import (
    RetryConfig,
    is_retryable_http_error,
    is_rate_limit_error,
    retry_gmail_api,
    retry_poll_api,
)


# ============================================
# HELPER FUNCTIONS
# ============================================

def create_http_error(status_code: int, reason: str = "Error") -> HttpError:
    """Create a mock HttpError for testing"""
    resp = Mock()
    resp.status = status_code
    resp.reason = reason

    content = f'{{"error": {{"code": {status_code}, "message": "{reason}"}}}}'.encode()
    return HttpError(resp=resp, content=content)


# ============================================
# TEST RETRY CONDITION FUNCTIONS
# ============================================

class TestRetryConditions:
    """Test retry condition functions"""

    def test_rate_limit_is_retryable(self):
        error = create_http_error(429, "Rate Limit Exceeded")
        assert is_retryable_http_error(error) is True

    def test_server_errors_are_retryable(self):
        for status_code in [500, 502, 503, 504]:
            error = create_http_error(status_code, "Server Error")
            assert is_retryable_http_error(error) is True

    def test_client_errors_are_not_retryable(self):
        for status_code in [400, 401, 403, 404]:
            error = create_http_error(status_code, "Client Error")
            assert is_retryable_http_error(error) is False

    def test_non_http_error_is_not_retryable(self):
        assert is_retryable_http_error(ValueError("Not an HTTP error")) is False

    def test_is_rate_limit_error(self):
        assert is_rate_limit_error(create_http_error(429, "Rate Limit")) is True
        assert is_rate_limit_error(create_http_error(500, "Server Error")) is False
        assert is_rate_limit_error(ConnectionError()) is False


# ============================================
# TEST RETRY DECORATORS
# ============================================

class TestRetryDecorators:
    """Test retry decorators"""

    def test_success_needs_no_retry(self):
        @retry_gmail_api(max_attempts=3)
        def successful_call():
            return {"id": "msg-1"}

        assert successful_call() == {"id": "msg-1"}

    def test_retries_on_rate_limit(self):
        call_count = [0]

        @retry_gmail_api(max_attempts=3, min_wait=0.01, max_wait=0.05)
        def rate_limited_call():
            call_count[0] += 1
            if call_count[0] < 3:
                raise create_http_error(429, "Rate Limit")
            return {"id": "msg-1"}

        assert rate_limited_call() == {"id": "msg-1"}
        assert call_count[0] == 3

    def test_does_not_retry_client_error(self):
        call_count = [0]

        @retry_gmail_api(max_attempts=3)
        def not_found():
            call_count[0] += 1
            raise create_http_error(404, "Not Found")

        with pytest.raises(HttpError) as exc:
            not_found()

        assert call_count[0] == 1
        assert exc.value.resp.status == 404

    def test_does_not_retry_other_exceptions(self):
        call_count = [0]

        @retry_gmail_api(max_attempts=3)
        def broken():
            call_count[0] += 1
            raise KeyError("payload")

        with pytest.raises(KeyError):
            broken()

        assert call_count[0] == 1

    def test_gives_up_after_max_attempts(self):
        call_count = [0]

        @retry_gmail_api(max_attempts=3, min_wait=0.01, max_wait=0.05)
        def always_unavailable():
            call_count[0] += 1
            raise create_http_error(503, "Service Unavailable")

        with pytest.raises(HttpError) as exc:
            always_unavailable()

        assert call_count[0] == 3
        assert exc.value.resp.status == 503

    def test_poll_budget(self):
        call_count = [0]

        @retry_poll_api()
        def flaky_list():
            call_count[0] += 1
            raise create_http_error(500, "Backend Error")

        with pytest.raises(HttpError):
            flaky_list()

        assert call_count[0] == RetryConfig.POLL_MAX_ATTEMPTS

    def test_preserves_function_name(self):
        @retry_gmail_api()
        def send_request():
            return None

        assert send_request.__name__ == "send_request"
