"""Package code system records into a FHIR batch Bundle."""

import re
from typing import Iterable, Optional

from fhirbundle import (
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

from owlfhir.diagnostics import DiagnosticKind, DiagnosticsCollector
from owlfhir.logging import setup_logging
from owlfhir.records import CodeSystemRecord, ConceptRecord
from owlfhir.vocab import short_form

logger = setup_logging()

_UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9]")


def bundle_id(name: str) -> str:
    """Derive a file- and URL-safe resource id from a code system name.

    Names that look like IRIs (they contain ``/``) are reduced to their short
    form first.

    >>> bundle_id("http://purl.obolibrary.org/obo/hp.owl")
    'hp-owl'
    >>> bundle_id("Human Phenotype Ontology")
    'Human-Phenotype-Ontology'
    """
    base = short_form(name) if "/" in name else name
    return _UNSAFE_ID_CHARS.sub("-", base)


def _concept_definition(concept: ConceptRecord) -> ConceptDefinition:
    properties = [
        ConceptProperty(code="parent", value_coding=Coding(system=parent.system, code=parent.code))
        for parent in concept.parents
    ]
    properties.append(ConceptProperty(code="root", value_boolean=concept.root))
    properties.append(ConceptProperty(code="deprecated", value_boolean=concept.deprecated))

    designations = [Designation(use=SYNONYM_USE, value=synonym) for synonym in concept.synonyms]
    return ConceptDefinition(
        code=concept.code,
        display=concept.display,
        designation=designations or None,
        property=properties,
    )


def to_code_system(record: CodeSystemRecord, resource_id: Optional[str] = None) -> CodeSystem:
    """Convert a record into a FHIR CodeSystem resource."""
    return CodeSystem(
        id=resource_id,
        url=record.url,
        version=record.version,
        name=record.name,
        status=record.status,
        publisher=record.publisher,
        description=record.description,
        hierarchy_meaning=record.hierarchy_meaning,
        value_set=record.value_set,
        content=record.content.value,
        count=record.concept_count,
        filter=[Filter(code=f.code, operator=list(f.operators), value=f.value) for f in record.filters],
        property=[
            PropertyDefinition(code=p.code, type=p.type.value, description=p.description)
            for p in record.properties
        ],
        concept=[_concept_definition(c) for c in record.concepts] or None,
    )


def assemble_bundle(
    records: Iterable[CodeSystemRecord],
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> Bundle:
    """Build the batch Bundle with one ``PUT CodeSystem/<id>`` entry per non-empty record.

    Records without concepts are excluded and noted as diagnostics. Entry order
    follows ``records``.
    """
    entries: list[BundleEntry] = []
    for record in records:
        if record.concept_count == 0:
            message = f"Excluding code system {record.name} because it has no codes"
            if diagnostics is not None:
                diagnostics.record(DiagnosticKind.EMPTY_CODE_SYSTEM, message, record.url, warn=False)
            else:
                logger.info({"message": message})
            continue

        resource_id = bundle_id(record.name)
        logger.info({"message": f"Adding code system {record.name} [{record.concept_count}]", "id": resource_id})
        entries.append(
            BundleEntry(
                resource=to_code_system(record, resource_id),
                request=BundleRequest(method="PUT", url=f"CodeSystem/{resource_id}"),
            )
        )
    return Bundle(type="batch", entry=entries or None)
