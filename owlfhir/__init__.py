"""
OWL to FHIR - Convert OWL ontologies into FHIR terminology resources.

Loads an ontology and its import closure, works out which terminology system
every class belongs to, classifies the closure, and writes one FHIR CodeSystem
per contributing ontology into a single batch Bundle ready for upload to a
terminology server.

    from pathlib import Path
    from owlfhir import transform

    result = transform(Path("hp.owl"), Path("hp-bundle.json"))
    print(result.code_system_count, result.concept_count)

The parser and reasoner are pluggable (see ``owlfhir.interfaces``); the defaults
in ``owlfhir.rdf`` are built on rdflib.
"""

from owlfhir.config import TransformConfig, load_transform_config
from owlfhir.diagnostics import Diagnostic, DiagnosticKind, DiagnosticsCollector
from owlfhir.errors import MissingOntologyIriError, OntologyLoadError, OutputWriteError, OwlFhirError
from owlfhir.interfaces import (
    Annotation,
    OntologyClosure,
    OntologyInterface,
    OntologyLoaderInterface,
    ReasonerFactory,
    ReasonerInterface,
)
from owlfhir.records import CodeSystemRecord, ConceptRecord, ContentMode, ParentRef
from owlfhir.transform import TransformResult, transform

__all__ = [
    "Annotation",
    "CodeSystemRecord",
    "ConceptRecord",
    "ContentMode",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticsCollector",
    "MissingOntologyIriError",
    "OntologyClosure",
    "OntologyInterface",
    "OntologyLoadError",
    "OntologyLoaderInterface",
    "OutputWriteError",
    "OwlFhirError",
    "ParentRef",
    "ReasonerFactory",
    "ReasonerInterface",
    "TransformConfig",
    "TransformResult",
    "load_transform_config",
    "transform",
]

__version__ = "0.1.0"
