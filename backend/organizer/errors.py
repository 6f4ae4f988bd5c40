# Overview: Base error type shared by every service; routes map it 1:1 to HTTP status codes.

"""
Organizer domain errors.

Every service module defines its own subclasses next to the code that raises
them (location_service.ParentNotFoundError, qr_code_service.QrCodeNotFoundError,
...). They all derive from OrganizerError so the HTTP layer can translate them
without knowing each one:

    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code

The message is always human-readable and never contains raw database text.
"""

from __future__ import annotations


class OrganizerError(Exception):
    """Recoverable domain error with an HTTP status attached."""

    status_code = 500
    default_message = "Operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}
