"""Exception hierarchy for update checks and installs."""

from __future__ import annotations

import enum


class UpdaterError(Exception):
    """Base class for every error raised by this package."""


class ParseError(UpdaterError):
    """A declared repository URL could not be mapped to a supported host."""

    def __init__(self, url: str, reason: str = "unrecognized repository URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url or '<empty>'}")


class FetchErrorKind(enum.Enum):
    NOT_FOUND = "not-found"
    RATE_LIMITED = "rate-limited"
    MALFORMED = "malformed"
    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    TRANSPORT = "transport"


class FetchError(UpdaterError):
    """Release metadata could not be fetched from a repository host."""

    def __init__(self, kind: FetchErrorKind, message: str = "", url: str = ""):
        self.kind = kind
        self.url = url
        self.message = message or kind.value
        super().__init__(f"{kind.value}: {self.message}")


class UpdateError(UpdaterError):
    """Base class for failures while applying an update."""

    def __init__(self, identifier: str, message: str):
        self.identifier = identifier
        super().__init__(f"{identifier}: {message}")


class InstallFailedError(UpdateError):
    """Download, extraction or move of the new release failed."""


class ReactivationFailedError(UpdateError):
    """The update was installed but the plugin could not be re-enabled."""


class HttpError(UpdaterError):
    """Transport-level failure below the HTTP status layer."""


class HttpTimeout(HttpError):
    pass


class HttpTransportError(HttpError):
    pass
