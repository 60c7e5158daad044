"""Value types shared by the streaming extraction and recovery components."""

from __future__ import annotations
from enum import Enum
from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr


class FieldSpec(BaseModel):
    """One of the recognised top-level string fields of a code document."""

    model_config = ConfigDict(frozen=True)

    name: str


CODE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(name="html"),
    FieldSpec(name="css"),
    FieldSpec(name="js"),
)


class ExtractionResult(BaseModel):
    """Best current value of a field for one buffer snapshot."""

    model_config = ConfigDict(frozen=True)

    field_name: str
    value: str = ""
    complete: bool = False
    brace_depth: int = 0  # diagnostic only


class FieldUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    field_name: str
    value: str


class RecoveredDocument(BaseModel):
    """The authoritative html/css/js triple recovered after streaming ends."""

    model_config = ConfigDict(frozen=True)

    html: StrictStr
    css: StrictStr
    js: StrictStr


class FailureReason(str, Enum):
    DOMAIN_REPORTED_ERROR = "domain_reported_error"
    MALFORMED_DOCUMENT = "malformed_document"
    UPSTREAM_TRANSPORT_ERROR = "upstream_transport_error"


class RecoveryFailure(BaseModel):
    """Why the final buffer could not become a RecoveredDocument.

    ``excerpt`` is a bounded slice of the offending text, for diagnostics only.
    """

    model_config = ConfigDict(frozen=True)

    reason: FailureReason
    message: str
    excerpt: str = ""


class PromptValidation(BaseModel):
    valid: StrictBool
    reason: StrictStr = ""


class UpstreamTransportError(RuntimeError):
    """The chunk source failed (network, provider error or safety block)."""
