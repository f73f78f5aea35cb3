from __future__ import annotations

import bcrypt

# bcrypt directly, no passlib: passlib 1.7 breaks on bcrypt >= 4.1
DEFAULT_ROUNDS = 12
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def _normalize_password_for_bcrypt(password: str) -> bytes:
    """bcrypt only reads the first 72 bytes; longer input is truncated instead of raising."""
    pw = (password or "").encode("utf-8")
    return pw[:72]


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(_normalize_password_for_bcrypt(password), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_normalize_password_for_bcrypt(password), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def looks_hashed(value: str) -> bool:
    return value.startswith(BCRYPT_PREFIXES)
