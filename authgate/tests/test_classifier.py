"""
Unit Tests for Response Classification
======================================

Tests for authgate/gateway/classifier.py
"""

import logging
from unittest.mock import Mock

import httpx
import pytest

from authgate.gateway.classifier import FailureKind, ResponseClassifier
from authgate.models import RequestRecord


def status_error(status_code: int, body: str = "") -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.com/api/tours")
    response = httpx.Response(status_code, text=body, request=request)
    return httpx.HTTPStatusError(f"status {status_code}", request=request, response=response)


@pytest.fixture
def record():
    """Fresh, never replayed record"""
    return RequestRecord(httpx.Request("GET", "https://api.example.com/api/tours"))


@pytest.fixture
def classifier():
    return ResponseClassifier()


# ============================================================================
# Status Mapping Tests
# ============================================================================

@pytest.mark.parametrize(
    "status_code,kind",
    [
        (401, FailureKind.AUTH_EXPIRED),
        (403, FailureKind.FORBIDDEN),
        (404, FailureKind.NOT_FOUND),
        (422, FailureKind.VALIDATION),
        (429, FailureKind.RATE_LIMITED),
        (500, FailureKind.SERVER_ERROR),
        (502, FailureKind.SERVER_ERROR),
        (599, FailureKind.SERVER_ERROR),
        (400, FailureKind.OTHER),
        (409, FailureKind.OTHER),
    ],
)
def test_status_mapping(classifier, record, status_code, kind):
    """Test the exact status-to-kind mapping"""
    assert classifier.classify(status_error(status_code), record) is kind


def test_401_on_retried_record_is_terminal(classifier, record):
    """Test that a replayed request cannot be classified as expired again"""
    record.retried = True
    assert classifier.classify(status_error(401), record) is FailureKind.OTHER


def test_no_response_is_network_error(classifier, record):
    """Test transport failures"""
    error = httpx.ConnectError("refused", request=record.request)
    assert classifier.classify(error, record) is FailureKind.NETWORK_ERROR

    timeout = httpx.ReadTimeout("slow", request=record.request)
    assert classifier.classify(timeout, record) is FailureKind.NETWORK_ERROR


# ============================================================================
# Observation Tests
# ============================================================================

def test_auth_expired_is_not_reported(classifier, record):
    """Test that the recoverable case is not surfaced to observers"""
    observer = Mock()
    classifier.add_observer(observer)

    assert classifier.observe(status_error(401), record) is FailureKind.AUTH_EXPIRED
    observer.assert_not_called()


def test_terminal_failure_is_reported(classifier, record):
    """Test that observers receive a report for terminal failures"""
    observer = Mock()
    classifier.add_observer(observer)

    classifier.observe(status_error(429), record)

    report = observer.call_args.args[0]
    assert report.kind is FailureKind.RATE_LIMITED
    assert report.status_code == 429
    assert report.method == "GET"
    assert report.url.endswith("/api/tours")


def test_failing_observer_does_not_break_others(classifier, record):
    """Test that an observer exception is contained"""
    broken = Mock(side_effect=RuntimeError("boom"))
    healthy = Mock()
    classifier.add_observer(broken)
    classifier.add_observer(healthy)

    assert classifier.observe(status_error(500), record) is FailureKind.SERVER_ERROR
    healthy.assert_called_once()


def test_validation_error_logs_body(classifier, record, caplog):
    """Test that validation failures log the response body"""
    with caplog.at_level(logging.WARNING, logger="authgate.gateway.classifier"):
        classifier.observe(status_error(422, '{"errors": ["name required"]}'), record)

    assert "Validation error" in caplog.text
    assert "name required" in caplog.text


def test_forbidden_logs_permission_message(classifier, record, caplog):
    """Test the 403 diagnostic"""
    with caplog.at_level(logging.WARNING, logger="authgate.gateway.classifier"):
        classifier.observe(status_error(403), record)

    assert "insufficient permissions" in caplog.text
