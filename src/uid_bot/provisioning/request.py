"""Command parsing and request validation for ``/uid``.

Two modes exist, selected by whether a name argument is present:

* clamping mode (``/uid [count]``): a missing, zero or unparsable count
  silently becomes 1 and the result is clamped to ``[1, MAX_UNITS]``;
* validating mode (``/uid <count> <name>``): a missing or out-of-range
  count, or a blank name, rejects the request outright.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import RequestValidationError

MAX_UNITS = 20
MIN_UNITS = 1

COUNT_MISSING_REASON = 'count_missing'
COUNT_OUT_OF_RANGE_REASON = 'count_out_of_range'
NAME_EMPTY_REASON = 'name_empty'

_LEADING_INT_RE = re.compile(r'\s*([+-]?\d+)')


@dataclass(frozen=True, slots=True)
class CommandArguments:
    """Raw ``/uid`` arguments, pre-split from the command line."""

    count: str | None = None
    name: str | None = None


@dataclass(frozen=True, slots=True)
class ProvisioningRequest:
    """Validated request for one batch of guest accounts."""

    effective_count: int
    requested_count: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if not MIN_UNITS <= self.effective_count <= MAX_UNITS:
            raise ValueError(
                f'effective_count must be in [{MIN_UNITS}, {MAX_UNITS}], '
                f'got {self.effective_count}'
            )

    @property
    def explicit_name(self) -> bool:
        return self.name is not None


def parse_command_text(text: str) -> CommandArguments:
    """Split ``/uid[@bot] [count] [name...]`` into its arguments.

    Everything after the count is the name, internal whitespace included.
    """
    parts = text.strip().split(maxsplit=2)
    count = parts[1] if len(parts) > 1 else None
    name = parts[2] if len(parts) > 2 else None
    return CommandArguments(count=count, name=name)


def parse_count(raw: str | None) -> int | None:
    """Parse the leading integer of *raw*, or ``None`` if there is none."""
    if raw is None:
        return None
    match = _LEADING_INT_RE.match(raw)
    if match is None:
        return None
    return int(match.group(1))


def resolve_request(args: CommandArguments) -> ProvisioningRequest:
    """Turn raw arguments into a :class:`ProvisioningRequest`.

    Raises:
        RequestValidationError: In validating mode only, when the count is
            missing or out of range, or the name is blank.
    """
    parsed = parse_count(args.count)

    if args.name is None:
        # parseInt-style fallback: 0 and garbage both mean "one".
        count = parsed or MIN_UNITS
        return ProvisioningRequest(
            effective_count=min(max(count, MIN_UNITS), MAX_UNITS),
            requested_count=args.count,
        )

    if parsed is None:
        raise RequestValidationError(
            COUNT_MISSING_REASON,
            f'Please provide a count between {MIN_UNITS} and {MAX_UNITS} '
            f'before the name, e.g. /uid 5 myname',
        )
    if not MIN_UNITS <= parsed <= MAX_UNITS:
        raise RequestValidationError(
            COUNT_OUT_OF_RANGE_REASON,
            f'Count must be between {MIN_UNITS} and {MAX_UNITS}.',
        )

    name = args.name.strip()
    if not name:
        raise RequestValidationError(
            NAME_EMPTY_REASON,
            'Name must not be empty.',
        )

    return ProvisioningRequest(
        effective_count=parsed,
        requested_count=args.count,
        name=name,
    )
