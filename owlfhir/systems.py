"""Resolve the terminology system (namespace) each class belongs to.

A class belongs to the ontology whose IRI prefixes the class IRI. Failing that,
classes named with the OBO convention (``HP_0000118``, ``GO_0008150``...) belong
to the ontology registered for their prefix in the prefix table, which maps
``hp`` to an ontology IRI such as ``http://purl.obolibrary.org/obo/hp.owl``.

Both lookup tables are built once per run over the whole import closure and
packaged in an immutable ``SystemContext``.
"""

import re
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, field_validator

from owlfhir.interfaces import OntologyInterface
from owlfhir.logging import setup_logging
from owlfhir.vocab import ANONYMOUS_SYSTEM, short_form

logger = setup_logging()

OBO_SHORT_FORM = re.compile(r"[A-Za-z]*_[0-9]*")
ONTOLOGY_FILE_SUFFIX = ".owl"


class SystemContext(BaseModel):
    """Per-run lookup tables for system resolution."""

    model_config = ConfigDict(frozen=True)

    prefix_systems: Mapping[str, str]
    iri_systems: Mapping[str, str]

    @field_validator("prefix_systems", "iri_systems")
    @classmethod
    def _read_only(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    def system_for(self, class_iri: str) -> Optional[str]:
        return self.iri_systems.get(class_iri)


def obo_prefix(class_short_form: str) -> Optional[str]:
    """Return the OBO prefix of a short form, or None if it is not OBO style.

    >>> obo_prefix("HP_0000118")
    'HP'
    >>> obo_prefix("Foo") is None
    True
    """
    if OBO_SHORT_FORM.fullmatch(class_short_form):
        return class_short_form.split("_", 1)[0]
    return None


def resolve_system(class_iri: str, ontology_iri: str, prefix_systems: Mapping[str, str]) -> Optional[str]:
    """Determine the system of a class, or None if it cannot be determined.

    Args:
        class_iri: IRI of the class.
        ontology_iri: IRI of the ontology the class was found in.
        prefix_systems: Lower-cased OBO prefix to ontology IRI.
    """
    if class_iri.startswith(ontology_iri):
        return ontology_iri

    prefix = obo_prefix(short_form(class_iri))
    if prefix is not None:
        return prefix_systems.get(prefix.lower())
    return None


def build_prefix_systems(ontologies: Sequence[OntologyInterface]) -> dict[str, str]:
    """Map the OBO-like prefix of every ``*.owl`` ontology IRI to that IRI."""
    prefix_systems: dict[str, str] = {}
    for ont in ontologies:
        iri = ont.ontology_iri
        if iri is None:
            logger.warning({"message": f"Ontology {ont.display_name()} has no IRI."})
            continue
        sf = short_form(iri)
        if sf.endswith(ONTOLOGY_FILE_SUFFIX):
            logger.info({"message": f"Found OBO-like IRI: {iri}"})
            prefix_systems[sf[: -len(ONTOLOGY_FILE_SUFFIX)].lower()] = iri
        else:
            logger.info({"message": f"IRI is not OBO-like: {iri}"})
    return prefix_systems


def build_system_context(ontologies: Sequence[OntologyInterface]) -> SystemContext:
    """Resolve the system of every class in the closure.

    Classes whose system cannot be resolved are assigned to the ontology they were
    found in. When a class appears in several ontologies, a real resolution beats a
    fallback and otherwise the first ontology in closure order wins.
    """
    names = "\n".join(str(ont.display_name()) for ont in ontologies)
    logger.info({"message": "Getting IRI -> system map for ontologies", "ontologies": names})

    prefix_systems = build_prefix_systems(ontologies)

    iri_systems: dict[str, str] = {}
    fallbacks: set[str] = set()
    for ont in ontologies:
        ontology_iri = ont.ontology_iri or ANONYMOUS_SYSTEM
        for class_iri in ont.classes():
            system = resolve_system(class_iri, ontology_iri, prefix_systems)
            if system is not None:
                if class_iri not in iri_systems or class_iri in fallbacks:
                    iri_systems[class_iri] = system
                    fallbacks.discard(class_iri)
            elif class_iri not in iri_systems:
                iri_systems[class_iri] = ontology_iri
                fallbacks.add(class_iri)

    logger.debug(
        {
            "message": "Built IRI -> system map",
            "classes": len(iri_systems),
            "fallbacks": len(fallbacks),
            "prefixes": sorted(prefix_systems),
        }
    )
    return SystemContext(prefix_systems=prefix_systems, iri_systems=iri_systems)
