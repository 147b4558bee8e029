"""Password checks for the optional HTTP Basic auth."""

import hmac

import bcrypt


def is_bcrypt_hash(value: str) -> bool:
    return value.startswith(("$2b$", "$2a$", "$2y$"))


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash or a plaintext setting."""
    if is_bcrypt_hash(hashed):
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    # Plaintext from the environment, constant-time comparison
    return hmac.compare_digest(plain.encode(), hashed.encode())
