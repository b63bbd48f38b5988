"""Exception hierarchy for the OWL to FHIR transformation."""

from pathlib import Path
from typing import Optional


class OwlFhirError(Exception):
    """Base class for every error raised by owlfhir."""


class MissingOntologyIriError(OwlFhirError):
    """An ontology has no primary IRI, so no CodeSystem url can be derived.

    Raised by the code system assembler; the transform recovers by skipping the
    ontology and recording a diagnostic.
    """

    def __init__(self, ontology_name: Optional[str] = None):
        self.ontology_name = ontology_name
        label = ontology_name or "<anonymous>"
        super().__init__(f"Could not create a code system for ontology {label} because it has no IRI")


class OntologyLoadError(OwlFhirError):
    """The input document, or one of its imports, could not be read or parsed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load ontology from {source}: {reason}")


class OutputWriteError(OwlFhirError):
    """The output bundle could not be written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write bundle to {path}: {reason}")
