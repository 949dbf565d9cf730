"""bcrypt password hashing and verification."""

import bcrypt

from src.settings import settings

# bcrypt only looks at the first 72 bytes; newer releases reject longer input.
_BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Salted adaptive hashing for admin credentials.

    Attributes:
        rounds: bcrypt cost factor (log2 of iterations).
    """

    def __init__(self, rounds: int | None = None) -> None:
        """Initialize hasher.

        Args:
            rounds: Cost factor. Defaults to BCRYPT_ROUNDS from settings.
        """
        self.rounds = rounds if rounds is not None else settings.security.bcrypt_rounds

    def hash(self, password: str) -> str:
        """Hash a plaintext password with a fresh salt.

        Args:
            password: Plaintext password.

        Returns:
            bcrypt hash string (``$2b$...``).
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a plaintext password against a stored hash.

        Comparison is constant-time inside bcrypt. A malformed hash
        counts as a mismatch.
        """
        try:
            return bcrypt.checkpw(self._encode(password), password_hash.encode("utf-8"))
        except ValueError:
            return False

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def get_password_hasher() -> PasswordHasher:
    """Factory function for PasswordHasher.

    Returns:
        Hasher using the configured cost factor.
    """
    return PasswordHasher()
