"""Password hashing helpers."""

import bcrypt

# bcrypt only looks at the first 72 bytes; newer releases raise instead of
# truncating, so truncate explicitly to keep hash and verify consistent.
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """One-way bcrypt hash with a verify counterpart."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a plaintext password using bcrypt.

        Raises:
            ValueError: If the password cannot be encoded as UTF-8
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Validate a plaintext password against a stored hash."""
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False
