"""Exceptions raised by sheetwatch."""

from __future__ import annotations


class SheetwatchError(Exception):
    """Base exception for all sheetwatch errors."""

    pass


class ReferenceParseError(SheetwatchError, ValueError):
    """Raised when a cell or range reference cannot be parsed.

    Carries the offending text and, once annotated by ``parse_region``,
    the sheet the reference was configured for.
    """

    def __init__(self, text: str, reason: str, sheet_name: str | None = None) -> None:
        self.text = text
        self.reason = reason
        self.sheet_name = sheet_name
        location = f" on sheet '{sheet_name}'" if sheet_name is not None else ""
        super().__init__(f"Invalid reference '{text}'{location}: {reason}")

    def for_sheet(self, sheet_name: str) -> ReferenceParseError:
        """Return a copy of this error annotated with the sheet name."""
        return ReferenceParseError(self.text, self.reason, sheet_name=sheet_name)


class ConfigError(SheetwatchError):
    """Raised when the watch configuration cannot be loaded."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid config '{path}': {reason}")


class CredentialsError(SheetwatchError):
    """Raised when service account credentials cannot be loaded or refreshed."""


class NotificationError(SheetwatchError):
    """Raised when the change notification service rejects a delivery."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
