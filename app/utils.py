"""Identifier and secret generation."""
import secrets
import string

ALPHABET = string.ascii_letters + string.digits
CODE_LENGTH = 12


def random_code(length: int = CODE_LENGTH) -> str:
    """Cryptographically random alphanumeric string."""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def generate_id(prefix: str) -> str:
    """Prefixed random id, e.g. ``circle-a8Kd02LmQz1x``."""
    return f"{prefix}-{random_code()}"
