"""Test fixtures and in-memory implementations of the collaborator interfaces.

This module provides:
- FakeOntology: an OntologyInterface backed by plain lists and dicts
- FakeReasoner / FakeReasonerFactory: a ReasonerInterface answering from
  explicit parent and equivalence tables, counting precompute/dispose calls
- FakeLoader: an OntologyLoaderInterface returning a prebuilt closure
- Factory helpers for annotations and ontologies
- Turtle fixtures used by the rdflib-backed end-to-end tests

The fakes let the assembler tests state exactly which labels, parents and
equivalences a class has without going through a parser.
"""

from pathlib import Path
from typing import Optional, Sequence

import pytest

from owlfhir.config import TransformConfig
from owlfhir.diagnostics import DiagnosticsCollector
from owlfhir.interfaces import (
    Annotation,
    OntologyClosure,
    OntologyInterface,
    OntologyLoaderInterface,
    ReasonerInterface,
)
from owlfhir.vocab import OWL_THING, RDFS_LABEL, XSD_BOOLEAN

OBO = "http://purl.obolibrary.org/obo/"
OBO_IN_OWL = "http://www.geneontology.org/formats/oboInOwl#"
EXACT_SYNONYM = OBO_IN_OWL + "hasExactSynonym"
OWL_DEPRECATED = "http://www.w3.org/2002/07/owl#deprecated"
DC_PUBLISHER = "http://purl.org/dc/elements/1.1/publisher"
DC_DESCRIPTION = "http://purl.org/dc/elements/1.1/description"
DC_SOURCE = "http://purl.org/dc/elements/1.1/source"


# --- Annotation helpers ---


def literal(prop: str, value: str, datatype: Optional[str] = None, language: Optional[str] = None) -> Annotation:
    return Annotation(property=prop, value=value, is_literal=True, datatype=datatype, language=language)


def iri_value(prop: str, value: str) -> Annotation:
    return Annotation(property=prop, value=value, is_literal=False)


def label(value: str) -> Annotation:
    return literal(RDFS_LABEL, value)


def synonym(value: str) -> Annotation:
    return literal(EXACT_SYNONYM, value)


def deprecated(value: str = "true", datatype: Optional[str] = XSD_BOOLEAN) -> Annotation:
    return literal(OWL_DEPRECATED, value, datatype=datatype)


# --- Fake collaborators ---


class FakeOntology(OntologyInterface):
    """OntologyInterface over in-memory tables.

    Args:
        iri: Ontology IRI, or None for an anonymous ontology.
        classes: Class IRIs in the signature; returned sorted.
        annotations: Ontology-level annotations.
        class_annotations: Class IRI to its annotations.
        version: Version IRI.
        imports: Imported ontology IRIs.
    """

    def __init__(
        self,
        iri: Optional[str],
        classes: Sequence[str] = (),
        annotations: Sequence[Annotation] = (),
        class_annotations: Optional[dict[str, list[Annotation]]] = None,
        version: Optional[str] = None,
        imports: Sequence[str] = (),
    ) -> None:
        self._iri = iri
        self._version = version
        self._classes = list(classes)
        self._annotations = list(annotations)
        self._class_annotations = dict(class_annotations or {})
        self._imports = list(imports)

    @property
    def ontology_iri(self) -> Optional[str]:
        return self._iri

    @property
    def version_iri(self) -> Optional[str]:
        return self._version

    def annotations(self) -> list[Annotation]:
        return list(self._annotations)

    def classes(self) -> list[str]:
        return sorted(self._classes)

    def class_annotations(self, class_iri: str) -> list[Annotation]:
        return list(self._class_annotations.get(class_iri, []))

    def imports(self) -> list[str]:
        return list(self._imports)


class FakeReasoner(ReasonerInterface):
    """ReasonerInterface answering from explicit tables.

    Classes missing from ``parents`` have ``owl:Thing`` as their only parent,
    like a real reasoner.
    """

    def __init__(
        self,
        parents: Optional[dict[str, set[str]]] = None,
        equivalents: Optional[dict[str, set[str]]] = None,
    ) -> None:
        self.parents = parents or {}
        self.equivalents = equivalents or {}
        self.precompute_calls = 0
        self.dispose_calls = 0

    def precompute(self) -> None:
        self.precompute_calls += 1

    def direct_superclasses(self, class_iri: str) -> frozenset[str]:
        if self.dispose_calls:
            raise RuntimeError("Reasoner has been disposed")
        if class_iri == OWL_THING:
            return frozenset()
        return frozenset(self.parents.get(class_iri, {OWL_THING}))

    def equivalent_classes(self, class_iri: str) -> frozenset[str]:
        if self.dispose_calls:
            raise RuntimeError("Reasoner has been disposed")
        return frozenset(self.equivalents.get(class_iri, set()) | {class_iri})

    def dispose(self) -> None:
        self.dispose_calls += 1


class FakeReasonerFactory:
    """Hands out one FakeReasoner and remembers how often it was asked."""

    def __init__(self, reasoner: Optional[FakeReasoner] = None) -> None:
        self.reasoner = reasoner or FakeReasoner()
        self.created = 0

    def create_reasoner(self, closure: OntologyClosure) -> FakeReasoner:
        self.created += 1
        return self.reasoner


class FakeLoader(OntologyLoaderInterface):
    def __init__(self, *ontologies: OntologyInterface) -> None:
        self.closure = OntologyClosure(root=ontologies[0], ontologies=tuple(ontologies))
        self.loaded: list[Path] = []

    def load(self, source: Path) -> OntologyClosure:
        self.loaded.append(source)
        return self.closure


# --- Fixtures ---


@pytest.fixture
def config() -> TransformConfig:
    """Config without IRI mappings, independent of any owlfhir.toml on disk."""
    return TransformConfig(
        publisher_properties=(DC_PUBLISHER,),
        description_properties=(DC_DESCRIPTION,),
    )


@pytest.fixture
def diagnostics() -> DiagnosticsCollector:
    return DiagnosticsCollector()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run every test from an empty directory so no stray owlfhir.toml or iri_mappings.txt is picked up."""
    monkeypatch.delenv("OWLFHIR_CONFIG", raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


# --- Turtle documents for end-to-end tests ---

PREFIXES = """\
@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .
@prefix dc: <http://purl.org/dc/elements/1.1/> .
@prefix oboInOwl: <http://www.geneontology.org/formats/oboInOwl#> .
"""

SIMPLE_ONTOLOGY_TTL = PREFIXES + """\
@prefix : <http://x.org/onto#> .

<http://x.org/onto> a owl:Ontology ;
    rdfs:label "Example Ontology" ;
    dc:publisher "Example Org" ;
    dc:description "A small test ontology." ;
    owl:versionIRI <http://x.org/onto/1.0> .

:Foo a owl:Class ;
    rdfs:label "Foo Label" .

:Bar a owl:Class ;
    rdfs:subClassOf :Foo ;
    rdfs:label "A" , "B" ;
    oboInOwl:hasExactSynonym "C" .

:Old a owl:Class ;
    rdfs:subClassOf :Foo ;
    owl:deprecated "true"^^xsd:boolean .
"""

MAIN_WITH_IMPORT_TTL = PREFIXES + """\
<http://x.org/main> a owl:Ontology ;
    rdfs:label "Main" ;
    owl:imports <http://purl.obolibrary.org/obo/hp.owl> .

<http://x.org/main#Disease> a owl:Class ;
    rdfs:label "Disease" ;
    rdfs:subClassOf <http://purl.obolibrary.org/obo/HP_0000118> .

<http://purl.obolibrary.org/obo/HP_0000001> a owl:Class .
"""

HP_TTL = PREFIXES + """\
@prefix obo: <http://purl.obolibrary.org/obo/> .

<http://purl.obolibrary.org/obo/hp.owl> a owl:Ontology ;
    rdfs:label "Human Phenotype Ontology" ;
    dc:source <http://purl.obolibrary.org/obo/hp/releases/2024-01-01/hp.owl> .

obo:HP_0000001 a owl:Class ;
    rdfs:label "All" .

obo:HP_0000118 a owl:Class ;
    rdfs:label "Phenotypic abnormality" ;
    rdfs:subClassOf obo:HP_0000001 .

obo:UBERON_0000062 a owl:Class ;
    rdfs:label "organ" .
"""


@pytest.fixture
def simple_ontology_file(tmp_path: Path) -> Path:
    path = tmp_path / "onto.ttl"
    path.write_text(SIMPLE_ONTOLOGY_TTL, encoding="utf-8")
    return path


@pytest.fixture
def import_closure_files(tmp_path: Path) -> tuple[Path, Path]:
    """A main ontology importing hp.owl, with hp.owl available as a local file."""
    main = tmp_path / "main.ttl"
    main.write_text(MAIN_WITH_IMPORT_TTL, encoding="utf-8")
    hp = tmp_path / "hp.ttl"
    hp.write_text(HP_TTL, encoding="utf-8")
    return main, hp
