"""Password hashing and verification using Argon2id

Passwords are combined with a server-side PASSWORD_PEPPER before hashing,
so a leaked user table alone is not enough to mount an offline attack.

Parameters (OWASP):
- Memory cost: 65536 KB (64 MB)
- Time cost: 3 iterations
- Parallelism: 4 threads
"""

import os
import re

from argon2 import PasswordHasher, Type
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError


_hasher = PasswordHasher(
    memory_cost=65536,  # 64 MB
    time_cost=3,
    parallelism=4,
    hash_len=32,
    salt_len=16,
    type=Type.ID  # Argon2id variant
)

MIN_PASSWORD_LENGTH = 8

# (pattern, error) pairs checked in order by validate_password_strength
_STRENGTH_RULES = [
    (r'[A-Z]', "Password must contain at least one uppercase letter"),
    (r'[a-z]', "Password must contain at least one lowercase letter"),
    (r'\d', "Password must contain at least one digit"),
    (r'[!@#$%^&*(),.?":{}|<>_\-+=\[\]\\\/~`]', "Password must contain at least one special character"),
]


def _get_pepper() -> str:
    """Get PASSWORD_PEPPER from environment.

    Raises:
        ValueError: If PASSWORD_PEPPER is not set
    """
    pepper = os.getenv('PASSWORD_PEPPER')
    if not pepper:
        raise ValueError("PASSWORD_PEPPER environment variable is not set")
    return pepper


def hash_password(password: str) -> str:
    """Hash a password using Argon2id with global pepper.

    Args:
        password: Plain text password to hash

    Returns:
        str: Argon2id hash string ($argon2id$v=19$m=65536,t=3,p=4$...)

    Raises:
        ValueError: If PASSWORD_PEPPER is not set or password is empty
    """
    if not password:
        raise ValueError("Password cannot be empty")

    return _hasher.hash(password + _get_pepper())


def verify_password(password: str, hash: str) -> bool:
    """Verify a password against an Argon2id hash.

    Returns:
        bool: True if password matches hash, False otherwise
    """
    if not password or not hash:
        return False

    try:
        _hasher.verify(hash, password + _get_pepper())
        return True
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def validate_password_strength(password: str) -> tuple[bool, str]:
    """Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter, lowercase letter, digit and special character

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_password_strength("weak")
        (False, "Password must be at least 8 characters long")
        >>> validate_password_strength("SecureP@ss123")
        (True, "")
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    for pattern, error in _STRENGTH_RULES:
        if not re.search(pattern, password):
            return False, error

    return True, ""
