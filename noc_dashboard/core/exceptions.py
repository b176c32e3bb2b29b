"""Error taxonomy for the cloud to local sync pipeline."""

from typing import Optional


class SyncError(Exception):
    """Base class for failures that abort a sync pass.

    ``resource`` names the step that failed (``pops``, ``analysts``, ...) and
    is prefixed to the message so the run log identifies it.
    """

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.resource = resource

    def __str__(self) -> str:
        if self.resource:
            return f"{self.resource}: {self.message}"
        return self.message


class RemoteCatalogError(SyncError):
    """The authoritative node could not provide a resource collection."""


class RemoteUnavailable(RemoteCatalogError):
    """Network failure or timeout talking to the cloud node."""


class RemoteRejected(RemoteCatalogError):
    """The cloud node answered, but not with a usable 2xx payload."""

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, resource)
        self.status_code = status_code


class LocalWriteFailure(SyncError):
    """A local transaction failed and was rolled back."""
