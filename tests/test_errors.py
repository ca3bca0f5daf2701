"""Tests for error classification."""

import pytest

from task_board.integrations.errors import UNKNOWN, classify_error


class TestClassifyError:
    @pytest.mark.parametrize("message,category,retryable", [
        ("EACCES: permission denied, open '/etc/x'", "Permission", False),
        ("HTTP 429 Too Many Requests", "RateLimit", True),
        ("Request timed out after 30s", "Timeout", True),
        ("connect ECONNREFUSED 127.0.0.1:5432", "Network", True),
        ("ENOENT: no such file or directory", "NotFound", False),
        ("SyntaxError: Unexpected token '}'", "Syntax", False),
        ("TypeError: x is not a function", "Type", False),
        ("3 tests failed", "Test", True),
    ])
    def test_categories(self, message, category, retryable):
        result = classify_error(message)
        assert result.category == category
        assert result.retryable is retryable
        assert result.suggestion

    def test_case_insensitive(self):
        assert classify_error("PERMISSION DENIED").category == "Permission"

    def test_first_rule_wins(self):
        # Mentions both a permission problem and a missing file.
        assert classify_error("permission denied: file not found").category == "Permission"

    def test_network_suggestion(self):
        assert classify_error("Connection refused").suggestion == "Check if service is running"

    def test_unknown(self):
        assert classify_error("something odd happened") == UNKNOWN
        assert classify_error("") == UNKNOWN

    def test_deterministic(self):
        message = "Connection reset by peer"
        assert classify_error(message) == classify_error(message)
