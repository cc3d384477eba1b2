"""Data validation helpers.

Functions:
- validate_email(email) -> bool: Empty string allowed (optional field)
- validate_test_score(score) -> int: Raise InvalidScoreError outside 0..MAX_TEST_SCORE
"""

import re

# Tests are scored out of 20
MAX_TEST_SCORE = 20

# Email validation pattern
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")


class InvalidScoreError(ValueError):
    """Raised when a test score is outside the accepted range."""

    def __init__(self, score: int):
        self.score = score
        super().__init__(f"Test score {score} is outside 0..{MAX_TEST_SCORE}")


def validate_email(email: str) -> bool:
    """Validate email format. Empty string is valid (optional field).

    Args:
        email: Email address to validate

    Returns:
        True if valid email or empty string, False otherwise
    """
    if not email:
        return True
    return bool(EMAIL_PATTERN.match(email))


def validate_test_score(score: int) -> int:
    """Check a test score is within 0..MAX_TEST_SCORE.

    Args:
        score: Raw score submitted by the student

    Returns:
        The same score

    Raises:
        InvalidScoreError: If the score is out of range
    """
    if score < 0 or score > MAX_TEST_SCORE:
        raise InvalidScoreError(score)
    return score
