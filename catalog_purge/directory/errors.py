from __future__ import annotations

from typing import Dict

CONNECTION_FAILED = 100
AUTHENTICATION_FAILED = 101
DATABASE_NOT_FOUND = 102
DRIVER_UNAVAILABLE = 103
INVALID_SETTINGS = 104

ENTRY_NOT_FOUND = 200
DELETE_REJECTED = 201

GENERIC_CONNECTION_MESSAGE = "Could not connect to the directory. Check the log for details."

# Only these messages are ever shown to an end user for connection failures.
USER_MESSAGES: Dict[int, str] = {
    CONNECTION_FAILED: "The directory server could not be reached. Verify the server address.",
    AUTHENTICATION_FAILED: "The directory rejected the supplied credentials.",
    DATABASE_NOT_FOUND: "The company database was not found on the directory server.",
    DRIVER_UNAVAILABLE: "The database driver for the configured server type is not installed.",
    INVALID_SETTINGS: "The connection settings are incomplete or invalid.",
}


class DirectoryError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


class DirectoryConnectionError(DirectoryError):
    """The directory rejected an attempt to open a session."""

    @property
    def user_message(self) -> str:
        return user_message_for(self.code)


def user_message_for(code: int) -> str:
    return USER_MESSAGES.get(code, GENERIC_CONNECTION_MESSAGE)


__all__ = [
    "AUTHENTICATION_FAILED",
    "CONNECTION_FAILED",
    "DATABASE_NOT_FOUND",
    "DELETE_REJECTED",
    "DRIVER_UNAVAILABLE",
    "DirectoryConnectionError",
    "DirectoryError",
    "ENTRY_NOT_FOUND",
    "GENERIC_CONNECTION_MESSAGE",
    "INVALID_SETTINGS",
    "USER_MESSAGES",
    "user_message_for",
]
