"""Provisioning pipeline: drives N sequential issuances into a manifest.

For unit ``i`` in ``1..N`` the pipeline:
  1. Picks the target name (the request's explicit name, or a fresh
     random one per unit).
  2. Calls the issuer exactly once.
  3. Adds a successful payload to the archive manifest.
  4. Reports a failed unit to the listener and moves on.
  5. Reports the completed count to the listener.

Units never overlap and never abort the batch. The manifest is returned
even when every unit failed.
"""

from __future__ import annotations

import logging

from ..context import BotContext
from ..observability.metrics import UNITS_TOTAL
from ..protocols import AccountIssuer, ProgressListener
from .archive import ArchiveManifest
from .errors import UnitIssuerError
from .naming import NameDeriver
from .request import ProvisioningRequest
from .units import PayloadKind, UnitResult, parse_payload

logger = logging.getLogger(__name__)


class _NullListener:
    async def unit_failed(self, index: int, reason: str) -> None:
        return None

    async def unit_completed(self, completed: int, total: int) -> None:
        return None


class ProvisioningPipeline:
    """Run one batch of guest account issuances.

    Args:
        issuer: Account issuer called once per unit.
        names: Name source for explicit and random naming.
        context: Process-wide context; supplies the archive number.
    """

    def __init__(
        self,
        *,
        issuer: AccountIssuer,
        names: NameDeriver,
        context: BotContext,
    ) -> None:
        self._issuer = issuer
        self._names = names
        self._context = context

    async def run(
        self,
        request: ProvisioningRequest,
        listener: ProgressListener | None = None,
        *,
        name: str | None = None,
    ) -> ArchiveManifest:
        """Issue ``request.effective_count`` accounts and collect them.

        Args:
            request: Validated request.
            listener: Awaited after every unit, in order.
            name: Pre-derived name to reuse for every unit. When omitted
                and the request carries an explicit name, it is derived
                once here.
        """
        listener = listener or _NullListener()
        total = request.effective_count
        if name is None and request.explicit_name:
            name = self._names.derive(request.name)

        manifest = ArchiveManifest(archive_number=self._context.next_archive_number())

        for index in range(1, total + 1):
            unit_name = name if name is not None else self._names.derive()
            result = await self._issue_unit(index, unit_name)
            manifest.add_unit(result)

            if not result.succeeded:
                await listener.unit_failed(index, result.failure_reason or '')
            await listener.unit_completed(index, total)

        logger.info(
            'Batch finished: %d/%d units issued (archive #%d)',
            len(manifest.entries),
            total,
            manifest.archive_number,
        )
        return manifest

    async def _issue_unit(self, index: int, name: str) -> UnitResult:
        try:
            payload = await self._issuer.issue(name)
        except UnitIssuerError as exc:
            logger.warning('Unit %d failed: %s', index, exc)
            UNITS_TOTAL.labels(outcome=exc.code).inc()
            return UnitResult.failure(index, code=exc.code, reason=exc.user_message)

        parsed = parse_payload(payload)
        if parsed.kind is PayloadKind.PAYLOAD_ONLY:
            logger.info('Unit %d issued without guest id/password fields', index)
        UNITS_TOTAL.labels(outcome=parsed.kind.value).inc()
        return UnitResult.success(index, parsed)
