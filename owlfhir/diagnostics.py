"""Diagnostics accumulation for a transformation run.

Recoverable problems (an anonymous ontology, a non-boolean ``deprecated``
annotation, an unreadable IRI mappings file, an empty code system...) do not stop
the run. Each one is recorded here and logged as it happens, and the full list is
returned to the caller in the ``TransformResult``.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from owlfhir.logging import setup_logging

logger = setup_logging()


class DiagnosticKind(str, Enum):
    MISSING_ONTOLOGY_IRI = "missing_ontology_iri"
    MALFORMED_ANNOTATION = "malformed_annotation"
    IRI_MAPPINGS = "iri_mappings"
    EMPTY_CODE_SYSTEM = "empty_code_system"


class Diagnostic(BaseModel):
    """One recorded, recoverable problem."""

    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind
    message: str
    subject: Optional[str] = Field(default=None, description="IRI or name the diagnostic is about")


class DiagnosticsCollector:
    """In-memory collector of diagnostics for a single run."""

    def __init__(self) -> None:
        self._diagnostics: list[Diagnostic] = []

    def record(self, kind: DiagnosticKind, message: str, subject: Optional[str] = None, *, warn: bool = True) -> Diagnostic:
        """Record one diagnostic and log it (warning level unless ``warn`` is False)."""
        diagnostic = Diagnostic(kind=kind, message=message, subject=subject)
        self._diagnostics.append(diagnostic)
        payload = {"message": message, "kind": kind.value, "subject": subject}
        if warn:
            logger.warning(payload)
        else:
            logger.info(payload)
        return diagnostic

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self._diagnostics if d.kind == kind]

    def __len__(self) -> int:
        return len(self._diagnostics)
