"""Error hierarchy for guest account provisioning.

Two families live here. Request-level errors either reject a request
before any work starts or abort it as a whole. Unit-level issuer errors
describe one failed issuance and never abort the batch.

Every error carries a stable ``code`` and a ``user_message`` that is safe to
show in chat. Diagnostic detail stays in ``str(exc)`` and the logs.
"""

from __future__ import annotations

REQUEST_INVALID_CODE = 'request_invalid'
STORAGE_UNAVAILABLE_CODE = 'storage_unavailable'
ARCHIVE_WRITE_FAILED_CODE = 'archive_write_failed'
DELIVERY_FAILED_CODE = 'delivery_failed'


class ProvisioningError(RuntimeError):
    """Base class for request-level provisioning failures."""

    code = 'provisioning_failed'
    user_message = 'Something went wrong while generating accounts'


class RequestValidationError(ProvisioningError):
    """Raised when a command carries a bad count or an empty name."""

    code = REQUEST_INVALID_CODE

    def __init__(self, reason: str, user_message: str) -> None:
        self.reason = reason
        self.user_message = user_message
        super().__init__(f'{REQUEST_INVALID_CODE}: {reason}')


class StorageProvisionError(ProvisioningError):
    """Raised when the scratch area for an archive cannot be created."""

    code = STORAGE_UNAVAILABLE_CODE
    user_message = 'Error creating temporary files'


class ArchiveWriteError(ProvisioningError):
    """Raised when the zip archive cannot be written to disk."""

    code = ARCHIVE_WRITE_FAILED_CODE
    user_message = 'Error creating accounts zip file'


class DeliveryError(ProvisioningError):
    """Raised when the chat transport refuses the finished archive."""

    code = DELIVERY_FAILED_CODE
    user_message = 'Error sending accounts zip file'


# ── Unit-level issuer errors ─────────────────────────────────────
#
# These never abort a batch: the pipeline turns them into failed units.

TRANSPORT_ERROR_CODE = 'transport_error'
MALFORMED_RESPONSE_CODE = 'malformed_response'


class UnitIssuerError(Exception):
    """Base exception for a single failed issuance."""

    code = 'issuer_error'
    user_message = 'account issuing failed.'

    def __init__(self, message: str = '', *, status_code: int = 0) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(f'{self.code}: {message}' if message else self.code)


class IssuerTransportError(UnitIssuerError):
    """The issuer could not be reached or answered with an HTTP error."""

    code = TRANSPORT_ERROR_CODE
    user_message = 'API call failed.'


class MalformedResponseError(UnitIssuerError):
    """The issuer answered, but without usable account info."""

    code = MALFORMED_RESPONSE_CODE
    user_message = 'guest_account_info missing.'
