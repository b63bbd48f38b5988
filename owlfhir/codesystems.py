"""Assemble one ontology of the import closure into a CodeSystemRecord."""

from typing import Optional

from owlfhir.annotations import build_annotation_map, find_iri_annotation, first_value
from owlfhir.concepts import assemble_concept
from owlfhir.config import TransformConfig
from owlfhir.diagnostics import DiagnosticsCollector
from owlfhir.errors import MissingOntologyIriError
from owlfhir.interfaces import OntologyInterface, ReasonerInterface
from owlfhir.logging import setup_logging
from owlfhir.records import DEFAULT_VERSION, CodeSystemRecord, ConceptRecord, ContentMode
from owlfhir.systems import SystemContext
from owlfhir.vocab import DC_SOURCE, RDFS_LABEL

logger = setup_logging()


def assemble_code_system(
    ontology: OntologyInterface,
    reasoner: ReasonerInterface,
    context: SystemContext,
    config: TransformConfig,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> CodeSystemRecord:
    """Create the code system for one ontology.

    The url is the ontology IRI, the version its version IRI (``NA`` if absent)
    and the name its first ``rdfs:label`` (the url if absent). Publisher and
    description come from the first configured annotation property that the
    ontology carries. An ontology derived from another one (it has a
    ``dc:source`` IRI annotation) is a ``fragment``; anything else is
    ``complete``.

    Only classes of this ontology's own signature whose resolved system equals
    the url become concepts.

    Raises:
        MissingOntologyIriError: If the ontology is anonymous.
    """
    url = ontology.ontology_iri
    if url is None:
        raise MissingOntologyIriError(ontology.display_name())

    ontology_annotations = ontology.annotations()
    amap = build_annotation_map(ontology_annotations)

    labels = amap.get(RDFS_LABEL)
    name = labels[0] if labels else url
    source = find_iri_annotation(ontology_annotations, DC_SOURCE)

    concepts: list[ConceptRecord] = []
    skipped = 0
    for class_iri in ontology.classes():
        concept = assemble_concept(class_iri, ontology, reasoner, context, url, diagnostics)
        if concept is None:
            skipped += 1
            logger.debug(
                {
                    "message": f"Class {class_iri} does not belong to {url}",
                    "system": context.system_for(class_iri),
                }
            )
            continue
        concepts.append(concept)

    logger.info(
        {
            "message": f"Created code system {name}",
            "url": url,
            "concepts": len(concepts),
            "classes_from_other_systems": skipped,
        }
    )
    return CodeSystemRecord(
        url=url,
        version=ontology.version_iri or DEFAULT_VERSION,
        name=name,
        publisher=first_value(amap, config.publisher_properties),
        description=first_value(amap, config.description_properties),
        content=ContentMode.FRAGMENT if source is not None else ContentMode.COMPLETE,
        value_set=url,
        concepts=tuple(concepts),
    )
