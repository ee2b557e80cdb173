import secrets
import string

# Same alphabet as nanoid: safe in a URL path segment without escaping.
SHARE_ID_ALPHABET = string.ascii_letters + string.digits + "_-"
DEFAULT_SHARE_ID_LENGTH = 10


def generate_share_id(length: int = DEFAULT_SHARE_ID_LENGTH) -> str:
    if length < 1:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(SHARE_ID_ALPHABET) for _ in range(length))


def is_share_id(value: str) -> bool:
    return bool(value) and all(c in SHARE_ID_ALPHABET for c in value)
