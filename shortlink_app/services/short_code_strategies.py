"""
Short code generation strategies for the shortlink service.
Uses Strategy Pattern to allow different generation algorithms.
"""

import re
import secrets
import string
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from shortlink_app.exceptions import ConflictError, ShortCodeExhaustedError, ValidationError
from shortlink_app.models.url import URL

URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "_-"
ALIAS_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,20}$")


def code_exists(db_session: Session, short_code: str) -> bool:
    return db_session.query(URL.id).filter(URL.short_code == short_code).first() is not None


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    @abstractmethod
    def generate(self, db_session: Session) -> str:
        """
        Generate a short code.

        Args:
            db_session: Database session for strategies that need to check uniqueness

        Returns:
            A short code not present in the store at the time of the check
        """
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Random URL-safe identifiers (A-Z, a-z, 0-9, '_' and '-').

    Checks the store before returning and retries on collision. The
    unique constraint on urls.short_code still backstops the race between
    the check and the insert.
    """

    def __init__(self, length: int = 7, max_retries: int = 5):
        self.length = length
        self.max_retries = max_retries
        self.characters = URL_SAFE_ALPHABET

    def generate(self, db_session: Session) -> str:
        for _ in range(self.max_retries):
            short_code = self._generate_random_string()
            if not code_exists(db_session, short_code):
                return short_code

        raise ShortCodeExhaustedError(
            f"Could not generate unique short code after {self.max_retries} attempts"
        )

    def _generate_random_string(self) -> str:
        return "".join(secrets.choice(self.characters) for _ in range(self.length))


class AliasValidator:
    """Validates user-chosen aliases against format, reservation and usage."""

    def __init__(self, reserved: Iterable[str]):
        self.reserved = frozenset(word.lower() for word in reserved)

    def validate(self, alias: str, db_session: Session) -> str:
        if not ALIAS_PATTERN.match(alias):
            raise ValidationError(
                "Invalid alias. Use 3-20 characters: letters, digits, '-' or '_'."
            )
        if alias.lower() in self.reserved:
            raise ValidationError("This alias is reserved and cannot be used.")
        if code_exists(db_session, alias):
            raise ConflictError("This alias is already taken. Please choose another.")
        return alias


class CodeGenerator:
    """
    Resolves the short code for a create request.

    A custom alias is validated and used as-is; otherwise the random
    strategy allocates one.
    """

    def __init__(self, strategy: ShortCodeStrategy, alias_validator: AliasValidator):
        self.strategy = strategy
        self.alias_validator = alias_validator

    def resolve(self, db_session: Session, alias: Optional[str] = None) -> str:
        if alias is not None:
            return self.alias_validator.validate(alias, db_session)
        return self.strategy.generate(db_session)
