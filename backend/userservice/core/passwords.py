"""Password Hashing — salted SHA-256 digest of a plaintext password.

Invariants:
    - hash_password is PURE: salt is generated by the caller
    - Digest is hex(sha256(password + salt))
"""

import hashlib


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((password + salt).encode("utf-8")).hexdigest()
