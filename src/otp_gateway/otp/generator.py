"""Verification code generator."""

import secrets

CODE_MIN = 100000
CODE_MAX = 999999


def generate_code() -> str:
    """Return a uniformly random 6-digit code from the OS CSPRNG.

    The range starts at 100000 so the code never needs zero padding.
    """
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))
