class SyncError(Exception):
    """Base class for catalog sync failures."""


class TransportError(SyncError):
    """The remote API could not be reached, refused us, or answered garbage. Fatal for the run."""


class RecordValidationError(SyncError):
    """A single remote record could not be mapped or persisted. The record is skipped."""

    def __init__(self, kind: str, remote_id, message: str):
        self.kind = kind
        self.remote_id = remote_id
        super().__init__(f"[{remote_id}] Could not import {kind}: {message}")


class AssetFetchError(RecordValidationError):
    """Downloading an image payload failed; the owning image is not saved."""


class SyncAlreadyRunning(SyncError):
    """Another catalog pass holds the run lock."""
