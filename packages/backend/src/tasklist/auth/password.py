"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor comes from TASKLIST_BCRYPT_ROUNDS (12 by default,
~100ms per hash). Tests drop it to 4.

To the rest of the app this is an opaque pair:
hash_password(pw) -> digest, verify_password(pw, digest) -> bool.
"""

from typing import Optional

import bcrypt

from tasklist.config import settings

# bcrypt only looks at the first 72 bytes
_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BYTES]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with a fresh random salt."""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored digest. Never raises."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        # Corrupt or non-bcrypt digest
        return False
