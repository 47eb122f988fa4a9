"""Custom exceptions for configuration management."""

from typing import List, Optional


class ConfigurationError(Exception):
    """
    Exception raised when configuration validation fails.

    Carries every validation error found plus suggestions for fixing them, so a
    misconfigured deployment reports all problems in one go.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: Primary error message
            errors: Specific validation errors, one per problem
            suggestions: Hints for fixing the errors
        """
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the message with numbered errors and bulleted suggestions."""
        parts = [self.message]

        if self.errors:
            parts.append("\nValidation Errors:")
            for i, error in enumerate(self.errors, 1):
                parts.append(f"  {i}. {error}")

        if self.suggestions:
            parts.append("\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"  - {suggestion}")

        return "\n".join(parts)
