"""
FHIR Terminology Bundle Models

Lightweight Pydantic models defining the contract between the OWL transformer
(producer) and a FHIR terminology server (consumer).

This package has minimal dependencies (only pydantic) so that tools reading the
generated bundles can import it without pulling in rdflib.

Example:
    from fhirbundle import Bundle

    with open("codesystems.json", encoding="utf-8") as f:
        bundle = Bundle.model_validate_json(f.read())
    for entry in bundle.entry or []:
        print(entry.request.url, len(entry.resource.concept or []))
"""

from .models import (
    SYNONYM_USE,
    Bundle,
    BundleEntry,
    BundleRequest,
    CodeSystem,
    Coding,
    ConceptDefinition,
    ConceptProperty,
    Designation,
    Filter,
    PropertyDefinition,
)

__all__ = [
    "SYNONYM_USE",
    "Bundle",
    "BundleEntry",
    "BundleRequest",
    "CodeSystem",
    "Coding",
    "ConceptDefinition",
    "ConceptProperty",
    "Designation",
    "Filter",
    "PropertyDefinition",
]

__version__ = "0.1.0"
