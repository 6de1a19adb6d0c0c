"""Password hashing with bcrypt."""

from typing import Optional

import bcrypt

from bizflow.config import get_settings


class PasswordHasher:
    """
    Hashes and checks passwords.

    The cost factor comes from AUTH_BCRYPT_ROUNDS; tests pass a low value
    to keep hashing fast.
    """

    def __init__(self, rounds: Optional[int] = None):
        self._rounds = rounds or get_settings().auth.bcrypt_rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash_password(self, password: str) -> str:
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self._rounds))
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """
        Compare a password with a stored hash.

        A malformed hash counts as a mismatch.
        """
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False
