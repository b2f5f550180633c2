"""CLI error handling with actionable hints.

Provides consistent error formatting for all sprig CLI commands.
"""

import click


class SprigCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise SprigCliError(
            "Branch 'feature' not found",
            hint="Run 'sprig branches <repo>' to list available branches"
        )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize the error with message and optional hint.

        Args:
            message: The primary error message.
            hint: Optional actionable suggestion for the user.
        """
        super().__init__(message)
        self.hint = hint

    def format_message(self) -> str:
        """Format the error message with hint if present.

        Returns:
            Formatted error message, with hint on a new line if provided.
        """
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg
