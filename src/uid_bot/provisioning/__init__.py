"""Guest account provisioning: naming, issuance, archiving, progress."""

from .archive import (
    INDEX_ENTRY_NAME,
    RAW_ENTRY_FILENAME,
    ArchiveBuilder,
    ArchiveEntry,
    ArchiveManifest,
    raw_entry_path,
)
from .errors import (
    ArchiveWriteError,
    DeliveryError,
    IssuerTransportError,
    MalformedResponseError,
    ProvisioningError,
    RequestValidationError,
    StorageProvisionError,
    UnitIssuerError,
)
from .naming import MIN_NAME_LENGTH, NameDeriver, normalize_name_base
from .pipeline import ProvisioningPipeline
from .progress import (
    PROGRESS_SEQUENCE,
    InvalidProgressTransition,
    ProgressReporter,
    ProgressState,
)
from .request import (
    MAX_UNITS,
    CommandArguments,
    ProvisioningRequest,
    parse_command_text,
    resolve_request,
)
from .units import GuestCredential, ParsedPayload, PayloadKind, UnitResult, parse_payload
from .workspace import ScopedWorkArea, TransientStore

__all__ = [
    'INDEX_ENTRY_NAME',
    'MAX_UNITS',
    'MIN_NAME_LENGTH',
    'PROGRESS_SEQUENCE',
    'RAW_ENTRY_FILENAME',
    'ArchiveBuilder',
    'ArchiveEntry',
    'ArchiveManifest',
    'ArchiveWriteError',
    'CommandArguments',
    'DeliveryError',
    'GuestCredential',
    'InvalidProgressTransition',
    'IssuerTransportError',
    'MalformedResponseError',
    'NameDeriver',
    'ParsedPayload',
    'PayloadKind',
    'ProgressReporter',
    'ProgressState',
    'ProvisioningError',
    'ProvisioningPipeline',
    'ProvisioningRequest',
    'RequestValidationError',
    'ScopedWorkArea',
    'StorageProvisionError',
    'TransientStore',
    'UnitIssuerError',
    'UnitResult',
    'normalize_name_base',
    'parse_command_text',
    'parse_payload',
    'raw_entry_path',
    'resolve_request',
]
