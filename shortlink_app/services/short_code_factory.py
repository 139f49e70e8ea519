"""
Factory for the code generator.
Builds it from settings once and reuses the instance.
"""

from shortlink_app.config import settings
from shortlink_app.services.short_code_strategies import (
    AliasValidator,
    CodeGenerator,
    RandomShortCodeStrategy,
)


class ShortCodeFactory:
    """Factory for the CodeGenerator with singleton caching"""

    _instance: CodeGenerator = None

    @classmethod
    def create(cls) -> CodeGenerator:
        """
        Create or return the cached CodeGenerator.

        Length, retry budget and reserved words come from settings.
        """
        if cls._instance is not None:
            return cls._instance

        cls._instance = CodeGenerator(
            strategy=RandomShortCodeStrategy(
                length=settings.short_code_length,
                max_retries=settings.max_retries,
            ),
            alias_validator=AliasValidator(settings.reserved_aliases),
        )
        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
