import json
import asyncio
import aiohttp
from functools import wraps
from typing import Optional
from kubernetes_asyncio.client import ApiException

_NOT_FOUND = "notfound"
_CONFLICT = "conflict"
# Messages of a JSON patch whose `test` operation did not match
_FAILED_TEST_MARKERS = ("test failed", "testing value")


class ReconcileError(Exception):
    """Base class for failures surfaced by a reconciliation.

    Every reconciliation error is retryable: the control loop requeues the
    affected resource instead of giving up on it.
    """

    retryable = True


class SerializationError(ReconcileError):
    """A resource payload could not be loaded or dumped."""


class OwnerReferenceError(ReconcileError, ValueError):
    """A controller owner reference could not be built."""


class KubeError(ReconcileError):
    """A cluster API call failed."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason

    @property
    def is_conflict(self) -> bool:
        """The write lost a race against another writer of the same object."""
        if self.status == 409 or (self.reason or "").lower() == _CONFLICT:
            return True
        message = str(self).lower()
        return self.status == 422 and any(
            marker in message for marker in _FAILED_TEST_MARKERS
        )

    @classmethod
    def from_api_exception(cls, ex: ApiException) -> "KubeError":
        """Convert kubernetes ApiException to a KubeError carrying its details."""
        error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"
        reason = ex.reason
        try:
            if ex.body:
                body = json.loads(ex.body)
                if "message" in body:
                    error_msg = f"{error_msg} - {body['message']}"
                for cause in (body.get("details") or {}).get("causes") or []:
                    if cause.get("message"):
                        error_msg = f"{error_msg}; {cause['message']}"
                reason = body.get("reason") or reason
        except (json.JSONDecodeError, AttributeError, TypeError):
            pass
        return cls(error_msg, status=ex.status, reason=reason)

    @classmethod
    def from_transport_error(cls, ex: Exception) -> "KubeError":
        if isinstance(ex, asyncio.TimeoutError):
            return cls("Kubernetes API call timed out", reason="Timeout")
        return cls(f"Kubernetes API transport error: {ex}", reason="Transport")


class FinalizerError(ReconcileError):
    """Failure within the finalizer protocol, wrapping the inner error."""

    APPLY = "apply"
    CLEANUP = "cleanup"
    ADD_FINALIZER = "add_finalizer"
    REMOVE_FINALIZER = "remove_finalizer"

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"Finalizer {stage} failed: {cause}")
        self.stage = stage
        self.cause = cause

    @property
    def is_conflict(self) -> bool:
        return isinstance(self.cause, KubeError) and self.cause.is_conflict


def _error_reason(ex: ApiException) -> str:
    try:
        return json.loads(ex.body).get("reason", "").lower()
    except (json.JSONDecodeError, AttributeError, TypeError):
        return ""


def not_found_error(ex: ApiException) -> bool:
    if not isinstance(ex, ApiException):
        return False
    return ex.status == 404 or _error_reason(ex) == _NOT_FOUND


def api_errors(func):
    """Re-raise cluster API failures of a coroutine as `KubeError`."""

    @wraps(func)
    async def _func(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except ApiException as ex:
            raise KubeError.from_api_exception(ex) from ex
        except (aiohttp.ClientError, asyncio.TimeoutError) as ex:
            raise KubeError.from_transport_error(ex) from ex

    return _func
