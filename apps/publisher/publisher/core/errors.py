"""Exception hierarchy for the publish step.

Only `ConfigurationDefect` and `ResourceError` abort a run. Everything
under `TemplateError` and `UploadError` is scoped to one
(target, instance) pair: the scheduler logs it, records a failed
outcome and moves on to the next instance.
"""

from typing import Optional


class ArtifactoryError(Exception):
    """Base class for every error raised by the publisher."""


class ConfigError(ArtifactoryError):
    """Raised when a configuration or manifest file cannot be used."""


# ---------------------------------------------------------------------------
# Fatal: abort the whole publish step
# ---------------------------------------------------------------------------

class ConfigurationDefect(ArtifactoryError):
    """The build step and the publish step disagree about what was built."""


class MissingBinaryError(ConfigurationDefect):
    def __init__(self, target_key: str, name: str = ""):
        self.target_key = target_key
        self.name = name
        what = f"binary {name!r}" if name else "binary"
        super().__init__(f"{what} for build target {target_key} not found")


class AmbiguousBinaryError(ConfigurationDefect):
    def __init__(self, target_key: str, paths: list[str]):
        self.target_key = target_key
        self.paths = paths
        super().__init__(
            f"{len(paths)} binaries registered for build target {target_key}: "
            + ", ".join(paths)
        )


class ResourceError(ArtifactoryError):
    """A built binary could not be opened."""

    def __init__(self, path: str, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"cannot open binary {path}: {cause}")


# ---------------------------------------------------------------------------
# Recoverable: scoped to one (target, instance) pair
# ---------------------------------------------------------------------------

class TemplateError(ArtifactoryError):
    """A destination template is malformed or references an unknown field."""


class UploadError(ArtifactoryError):
    """Base class for failures of a single upload request.

    `status_code` is set when the server answered.
    """

    status_code: Optional[int] = None


class InvalidSourceError(UploadError):
    """The upload source is a directory, not a regular file."""


class TransportError(UploadError):
    """The request never produced an HTTP response."""


class CancellationError(UploadError):
    """The run was cancelled while (or before) the request was in flight."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"publish cancelled: {reason}")


class DecodeError(UploadError):
    """A 2xx response body could not be decoded."""

    def __init__(self, message: str, status_code: int):
        self.status_code = status_code
        super().__init__(message)


class ApiError(UploadError):
    """A non-2xx response. `errors` is empty when the body had no detail."""

    def __init__(self, method: str, url: str, status_code: int, errors: list):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.errors = errors
        super().__init__(str(self))

    def __str__(self) -> str:
        details = ", ".join(f"{e.message} ({e.status})" for e in self.errors)
        return f"{self.method} {self.url}: {self.status_code} [{details}]"


FATAL_ERRORS = (ConfigurationDefect, ResourceError)
