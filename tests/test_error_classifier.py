"""Tests for failure classification."""
import pytest

from enums.error_kind import ErrorKind
from services.error_classifier import classify, classify_payload


def test_embedded_json_risk_is_security_rejection():
    error = classify('API error (400): {"error": "Token Risk: score 12"}')

    assert error.kind is ErrorKind.SECURITY_REJECTION
    assert error.status == 400
    assert error.payload == {"error": "Token Risk: score 12"}
    assert error.message == "Token Risk: score 12"


@pytest.mark.parametrize("text", ["Honeypot detected", "token is on a blacklist", "possible RUG pull", "Unsafe contract"])
def test_risk_terms_in_json_error(text):
    assert classify(f'API error (400): {{"error": "{text}"}}').kind is ErrorKind.SECURITY_REJECTION


def test_embedded_json_insufficient_funds():
    error = classify('API error (400): {"error": "Insufficient SOL balance"}')
    assert error.kind is ErrorKind.INSUFFICIENT_BALANCE


def test_json_without_known_terms_falls_back_to_status():
    error = classify('API error (404): {"error": "Wallet not found"}')
    assert error.kind is ErrorKind.UPSTREAM_USER_ERROR
    assert error.message == "Wallet not found"


@pytest.mark.parametrize(
    "status, kind",
    [
        (408, ErrorKind.NETWORK_TIMEOUT),
        (504, ErrorKind.NETWORK_TIMEOUT),
        (400, ErrorKind.UPSTREAM_USER_ERROR),
        (422, ErrorKind.UPSTREAM_USER_ERROR),
        (500, ErrorKind.UPSTREAM_SYSTEM_ERROR),
        (503, ErrorKind.UPSTREAM_SYSTEM_ERROR),
    ],
)
def test_status_ranges(status, kind):
    assert classify(f"API error ({status}): something broke").kind is kind


def test_status_wins_over_substrings():
    # a plain-text 500 mentioning a timeout is still a system error
    error = classify("API error (500): upstream RPC timeout")
    assert error.kind is ErrorKind.UPSTREAM_SYSTEM_ERROR


@pytest.mark.parametrize(
    "raw",
    ["API call timeout after 30000ms", "request timed out", "Blockhash not found", "Connection refused (os error 111)"],
)
def test_network_substrings(raw):
    assert classify(raw).kind is ErrorKind.NETWORK_TIMEOUT


def test_token_risk_substring_without_status():
    assert classify("Token Risk: liquidity too low").kind is ErrorKind.SECURITY_REJECTION


def test_insufficient_substring_without_status():
    assert classify("insufficient lamports 5000, need 10000").kind is ErrorKind.INSUFFICIENT_BALANCE


def test_unknown_fallback():
    error = classify("something odd happened")
    assert error.kind is ErrorKind.UNKNOWN
    assert error.status is None


def test_detail_is_escaped_and_truncated():
    error = classify("API error (502): <html>" + "x" * 500 + "</html>")

    assert error.kind is ErrorKind.UPSTREAM_SYSTEM_ERROR
    assert error.message.startswith("&lt;html&gt;")
    assert len(error.message) <= 200


def test_classify_payload_from_success_false_body():
    error = classify_payload({"success": False, "error": "Token Risk: score 12"}, 200)

    assert error.kind is ErrorKind.SECURITY_REJECTION
    assert error.status == 200


def test_classify_payload_plain_failure_is_unknown():
    error = classify_payload({"success": False, "error": "Quote unavailable"}, 200)
    assert error.kind is ErrorKind.UNKNOWN


def test_transient_kinds():
    assert ErrorKind.NETWORK_TIMEOUT.transient
    assert ErrorKind.UPSTREAM_SYSTEM_ERROR.transient
    assert not ErrorKind.SECURITY_REJECTION.transient
    assert not ErrorKind.UPSTREAM_USER_ERROR.transient
