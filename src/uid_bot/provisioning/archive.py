"""Account archive manifest and zip assembly.

Archives use a fixed internal layout::

    {index}/guest100067.dat     raw issuer payload for unit ``index``
    ID.json                     [{"uid": ..., "password": ...}, ...]

Raw entries appear in unit-index order. ``ID.json`` is written only when
at least one unit produced a complete guest id/password pair; its absence
is not an error.
"""

from __future__ import annotations

import json
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .errors import ArchiveWriteError
from .units import GuestCredential, UnitResult

logger = logging.getLogger(__name__)

RAW_ENTRY_FILENAME = 'guest100067.dat'
INDEX_ENTRY_NAME = 'ID.json'
ARCHIVE_FILENAME_PREFIX = 'accounts'


def raw_entry_path(index: int) -> str:
    """Archive path of the raw payload for unit *index*."""
    return f'{index}/{RAW_ENTRY_FILENAME}'


def serialize_payload(payload: Mapping[str, Any]) -> bytes:
    """Compact JSON bytes for one issuer payload."""
    return json.dumps(payload, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    path: str
    data: bytes


@dataclass
class ArchiveManifest:
    """Entries accumulated for one request, in unit order."""

    archive_number: int = 1
    entries: list[ArchiveEntry] = field(default_factory=list)
    credentials: list[GuestCredential] = field(default_factory=list)
    _last_index: int = field(default=0, init=False, repr=False)

    @property
    def filename(self) -> str:
        return f'{ARCHIVE_FILENAME_PREFIX}_{self.archive_number}.zip'

    @property
    def has_index(self) -> bool:
        return bool(self.credentials)

    @property
    def entry_names(self) -> list[str]:
        """Every path the finished archive will contain, in write order."""
        names = [entry.path for entry in self.entries]
        if self.has_index:
            names.append(INDEX_ENTRY_NAME)
        return names

    def add_unit(self, result: UnitResult) -> None:
        """Record a unit outcome; failed units leave no trace."""
        if result.payload is None:
            return
        if result.index <= self._last_index:
            raise ValueError(
                f'unit {result.index} added after unit {self._last_index}'
            )
        self._last_index = result.index
        self.entries.append(
            ArchiveEntry(
                path=raw_entry_path(result.index),
                data=serialize_payload(result.payload.raw),
            )
        )
        if result.payload.credential is not None:
            self.credentials.append(result.payload.credential)

    def index_bytes(self) -> bytes:
        """Pretty-printed ``ID.json`` content."""
        records = [credential.to_dict() for credential in self.credentials]
        return (json.dumps(records, indent=2, ensure_ascii=False) + '\n').encode('utf-8')

    def discard(self) -> None:
        self.entries.clear()
        self.credentials.clear()


class ArchiveBuilder:
    """Write an :class:`ArchiveManifest` out as a zip file."""

    def __init__(self, *, compression: int = zipfile.ZIP_DEFLATED) -> None:
        self._compression = compression

    def finalize(self, manifest: ArchiveManifest, destination: Path) -> Path:
        """Write *manifest* to *destination* and return the archive path.

        Raises:
            ArchiveWriteError: If the archive cannot be written. Any
                partially written file is removed.
        """
        try:
            with zipfile.ZipFile(destination, 'w', compression=self._compression) as zf:
                for entry in manifest.entries:
                    zf.writestr(entry.path, entry.data)
                if manifest.has_index:
                    zf.writestr(INDEX_ENTRY_NAME, manifest.index_bytes())
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            logger.exception('Archive write failed: %s', destination)
            _remove_partial(destination)
            raise ArchiveWriteError(
                f'failed to write archive {destination}: {exc}'
            ) from exc

        logger.info(
            'Archive written: %s (%d raw entries, index=%s)',
            destination.name,
            len(manifest.entries),
            manifest.has_index,
        )
        return destination


def _remove_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning('Could not remove partial archive %s', path, exc_info=True)
