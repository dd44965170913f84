"""Typed failures raised by the extraction pipeline.

`client_correctable` tells an outer API layer whether the caller can fix the
problem (missing contract, missing upload, image-only PDF) or whether it is a
server fault.
"""
from __future__ import annotations


class ContractIntelError(Exception):
    client_correctable = False


class NotFoundError(ContractIntelError):
    client_correctable = True


class FileMissingError(NotFoundError):
    """Stored document path is not readable from file storage."""


class NoDocumentError(ContractIntelError):
    client_correctable = True


class EmptyExtractionError(ContractIntelError):
    """Extraction produced no usable text (scanned, image-only or corrupt PDF)."""

    client_correctable = True


class ExtractionFailedError(ContractIntelError):
    """The PDF could not be opened or parsed; the underlying error is `__cause__`."""


class PipelineCancelledError(ContractIntelError):
    pass


def raise_if_cancelled(cancel_event, where: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise PipelineCancelledError(f"Cancelled {where}")
