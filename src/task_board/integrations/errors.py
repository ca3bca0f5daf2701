"""Error message classification: category, retryability and a suggestion."""

from task_board.models import ErrorClassification

# First match wins; patterns are matched against the lower-cased message.
RULES: list[tuple[str, tuple[str, ...], bool, str]] = [
    (
        "Permission",
        ("permission denied", "eacces", "eperm", "operation not permitted", "forbidden", "403"),
        False,
        "Check file permissions",
    ),
    (
        "RateLimit",
        ("rate limit", "rate_limit", "too many requests", "429", "overloaded"),
        True,
        "Wait before retrying; the service is throttling requests",
    ),
    (
        "Timeout",
        ("timed out", "timeout", "deadline exceeded"),
        True,
        "Retry, or raise the timeout if the operation is slow",
    ),
    (
        "Network",
        (
            "connection refused", "connection reset", "econnrefused", "econnreset",
            "network", "host unreachable", "name resolution", "dns",
        ),
        True,
        "Check if service is running",
    ),
    (
        "NotFound",
        ("no such file", "not found", "enoent", "404", "does not exist"),
        False,
        "Check that the path or resource exists",
    ),
    (
        "Syntax",
        ("syntaxerror", "syntax error", "unexpected token", "parse error", "unexpected eof"),
        False,
        "Fix the syntax error at the reported location",
    ),
    (
        "Type",
        ("typeerror", "type error", "mismatched types", "expected type", "is not assignable"),
        False,
        "Fix the type mismatch reported by the compiler",
    ),
    (
        "Test",
        ("test failed", "tests failed", "assertionerror", "assertion failed", "failing test"),
        True,
        "Inspect the failing test output and fix the code under test",
    ),
]

UNKNOWN = ErrorClassification(
    category="Unknown",
    retryable=True,
    suggestion="Inspect the error message and the agent log",
)


def classify_error(message: str) -> ErrorClassification:
    """Classify an error message. Deterministic: same message, same result."""
    lowered = message.lower()
    for category, patterns, retryable, suggestion in RULES:
        if any(p in lowered for p in patterns):
            return ErrorClassification(category, retryable, suggestion)
    return UNKNOWN
