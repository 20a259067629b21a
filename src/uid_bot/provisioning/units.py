"""Per-unit provisioning outcomes and issuer payload extraction."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

ACCOUNT_INFO_FIELD = 'guest_account_info'
GUEST_UID_FIELD = 'com.garena.msdk.guest_uid'
GUEST_PASSWORD_FIELD = 'com.garena.msdk.guest_password'


class PayloadKind(str, Enum):
    """Whether an issuer payload can feed the credential index."""

    FIELD_COMPLETE = 'field_complete'
    PAYLOAD_ONLY = 'payload_only'


@dataclass(frozen=True, slots=True)
class GuestCredential:
    uid: Any
    password: Any

    def to_dict(self) -> dict[str, Any]:
        return {'uid': self.uid, 'password': self.password}


@dataclass(frozen=True, slots=True)
class ParsedPayload:
    """Issuer payload tagged with the outcome of credential extraction."""

    raw: Mapping[str, Any]
    kind: PayloadKind
    credential: GuestCredential | None = None


@dataclass(frozen=True, slots=True)
class UnitResult:
    """Outcome of one issuance attempt (``index`` is 1-based)."""

    index: int
    payload: ParsedPayload | None = None
    failure_code: str | None = None
    failure_reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.payload is not None

    @classmethod
    def success(cls, index: int, payload: ParsedPayload) -> UnitResult:
        return cls(index=index, payload=payload)

    @classmethod
    def failure(cls, index: int, *, code: str, reason: str) -> UnitResult:
        return cls(index=index, failure_code=code, failure_reason=reason)


def has_account_info(payload: Any) -> bool:
    """Return True if *payload* is an object with a non-empty account info."""
    return isinstance(payload, Mapping) and bool(payload.get(ACCOUNT_INFO_FIELD))


def parse_payload(payload: Mapping[str, Any]) -> ParsedPayload:
    """Extract the guest id/password pair from an issuer payload.

    Payloads without both fields are still valid raw artifacts; they are
    tagged ``PAYLOAD_ONLY`` and carry no credential.
    """
    info = payload.get(ACCOUNT_INFO_FIELD)
    if isinstance(info, Mapping):
        uid = info.get(GUEST_UID_FIELD)
        password = info.get(GUEST_PASSWORD_FIELD)
        if uid not in (None, '') and password not in (None, ''):
            return ParsedPayload(
                raw=payload,
                kind=PayloadKind.FIELD_COMPLETE,
                credential=GuestCredential(uid=uid, password=password),
            )
    return ParsedPayload(raw=payload, kind=PayloadKind.PAYLOAD_ONLY)
