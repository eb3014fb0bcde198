"""Error taxonomy for Storybook Illustrator.

Every error the service deliberately raises derives from
:class:`StorybookError`.  Each class fixes the HTTP status it maps to, so the
API layer can render any of them with a single exception handler.

========================  ======  =============================================
Class                     Status  Raised when
========================  ======  =============================================
``ValidationError``       400     The client sent an unusable request.
``ConfigurationError``    500     The server is missing a credential or holds
                                  a malformed template.
``UpstreamError``         502     The images API answered with a non-success
                                  status or a payload without an image.
``UpstreamTimeoutError``  502     The images API did not answer in time.
========================  ======  =============================================

Upstream errors are normally caught at the task boundary and turned into
failure results; they only reach the client as part of an aggregate 502.
"""

from __future__ import annotations

from typing import Any


class StorybookError(Exception):
    """Base class for errors with a user-facing message and HTTP status.

    Attributes:
        message: Human-readable message, safe to show to the user.
        context: Extra keys merged into the JSON error body.
    """

    status_code: int = 500

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body for this error."""
        payload: dict[str, Any] = {"error": self.message}
        payload.update(self.context)
        return payload


class ValidationError(StorybookError):
    """User-friendly validation error.

    The message names the offending field and is displayed to the user as is.
    """

    status_code = 400


class ConfigurationError(StorybookError):
    """The server is not configured to fulfil the request."""

    status_code = 500


class UpstreamError(StorybookError):
    """The upstream images API call failed.

    Attributes:
        status: HTTP status returned by the upstream API, or ``None`` when no
            response was received.
    """

    status_code = 502

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class UpstreamTimeoutError(UpstreamError):
    """The upstream call exceeded the configured timeout."""
