"""Tests for the rdflib ontology, loader and structural reasoner.

This module verifies:
- Ontology identity, annotations and class signature read from Turtle
- Import closure loading with IRI mappings, cycles and missing imports
- Direct superclasses with transitive reduction
- Equivalence (explicit, via subclass cycles, and with owl:Thing)
- Reasoner lifecycle: lazy precompute and dispose
"""

from pathlib import Path

import pytest
from rdflib import Graph

from owlfhir.errors import OntologyLoadError
from owlfhir.rdf import (
    RdflibOntology,
    RdflibOntologyLoader,
    StructuralReasoner,
    StructuralReasonerFactory,
    named_classes,
)
from owlfhir.interfaces import OntologyClosure
from owlfhir.vocab import OWL_THING, RDFS_LABEL, XSD_BOOLEAN
from tests.conftest import DC_PUBLISHER, DC_SOURCE, OBO, OWL_DEPRECATED, PREFIXES, FakeOntology

X = "http://x.org/t#"
HP = OBO + "hp.owl"


def make_graph(body: str) -> Graph:
    graph = Graph()
    graph.parse(data=PREFIXES + "@prefix : <http://x.org/t#> .\n" + body, format="turtle")
    return graph


def make_reasoner(body: str) -> StructuralReasoner:
    reasoner = StructuralReasoner(make_graph(body))
    reasoner.precompute()
    return reasoner


class TestRdflibOntology:
    def test_identity_and_annotations(self, simple_ontology_file: Path) -> None:
        graph = Graph()
        graph.parse(str(simple_ontology_file), format="turtle")
        ont = RdflibOntology(graph, str(simple_ontology_file))

        assert ont.ontology_iri == "http://x.org/onto"
        assert ont.version_iri == "http://x.org/onto/1.0"
        assert ont.display_name() == "Example Ontology"
        props = {a.property for a in ont.annotations()}
        assert RDFS_LABEL in props
        assert DC_PUBLISHER in props
        assert "http://www.w3.org/2002/07/owl#versionIRI" not in props

    def test_classes_are_sorted(self, simple_ontology_file: Path) -> None:
        graph = Graph()
        graph.parse(str(simple_ontology_file), format="turtle")
        ont = RdflibOntology(graph, "onto")
        assert ont.classes() == ["http://x.org/onto#Bar", "http://x.org/onto#Foo", "http://x.org/onto#Old"]

    def test_class_annotations(self, simple_ontology_file: Path) -> None:
        graph = Graph()
        graph.parse(str(simple_ontology_file), format="turtle")
        ont = RdflibOntology(graph, "onto")

        old = ont.class_annotations("http://x.org/onto#Old")
        assert len(old) == 1
        assert old[0].property == OWL_DEPRECATED
        assert old[0].value == "true"
        assert old[0].datatype == XSD_BOOLEAN

        bar_labels = sorted(a.value for a in ont.class_annotations("http://x.org/onto#Bar") if a.property == RDFS_LABEL)
        assert bar_labels == ["A", "B"]

    def test_iri_valued_annotation(self) -> None:
        graph = make_graph("<http://x.org/t> a owl:Ontology ; dc:source <http://x.org/upstream> .\n")
        ont = RdflibOntology(graph, "t")
        (ann,) = ont.annotations()
        assert ann.property == DC_SOURCE
        assert ann.is_literal is False
        assert ann.value == "http://x.org/upstream"

    def test_anonymous_ontology(self) -> None:
        graph = make_graph("[] a owl:Ontology ; rdfs:label \"Nameless\" .\n:A a owl:Class .\n")
        ont = RdflibOntology(graph, "anon")
        assert ont.ontology_iri is None
        assert ont.version_iri is None
        assert ont.display_name() == "Nameless"
        assert ont.classes() == [X + "A"]

    def test_document_without_ontology_header(self) -> None:
        ont = RdflibOntology(make_graph(":A a owl:Class .\n"), "bare")
        assert ont.ontology_iri is None
        assert ont.annotations() == []
        assert ont.imports() == []


class TestNamedClasses:
    def test_signature_includes_referenced_classes(self) -> None:
        graph = make_graph(
            ":A a owl:Class .\n"
            ":B rdfs:subClassOf :C .\n"
            ":D owl:equivalentClass [ owl:intersectionOf ( :E [ a owl:Restriction ;"
            " owl:onProperty :p ; owl:someValuesFrom :F ] ) ] .\n"
            ":G rdfs:subClassOf [ a owl:Restriction ; owl:onProperty :q ; owl:someValuesFrom xsd:string ] .\n"
        )
        names = {str(c) for c in named_classes(graph)}
        assert names == {X + n for n in ("A", "B", "C", "D", "E", "F", "G")}


class TestRdflibOntologyLoader:
    def test_single_document(self, simple_ontology_file: Path) -> None:
        closure = RdflibOntologyLoader().load(simple_ontology_file)
        assert len(closure.ontologies) == 1
        assert closure.root.ontology_iri == "http://x.org/onto"

    def test_import_redirected_to_local_file(self, import_closure_files) -> None:
        main, hp = import_closure_files
        loader = RdflibOntologyLoader({HP: hp}, allow_remote=False)
        closure = loader.load(main)

        assert [o.ontology_iri for o in closure.ontologies] == ["http://x.org/main", HP]
        assert closure.root is closure.ontologies[0]

    def test_unmapped_import_without_remote_access(self, import_closure_files) -> None:
        main, _ = import_closure_files
        with pytest.raises(OntologyLoadError) as excinfo:
            RdflibOntologyLoader(allow_remote=False).load(main)
        assert excinfo.value.source == HP

    def test_mapped_file_missing(self, import_closure_files, tmp_path: Path) -> None:
        main, _ = import_closure_files
        loader = RdflibOntologyLoader({HP: tmp_path / "missing.ttl"}, allow_remote=False)
        with pytest.raises(OntologyLoadError, match="does not exist"):
            loader.load(main)

    def test_missing_input(self, tmp_path: Path) -> None:
        with pytest.raises(OntologyLoadError):
            RdflibOntologyLoader().load(tmp_path / "nope.ttl")

    def test_unparseable_input(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.ttl"
        bad.write_text("this is not turtle {", encoding="utf-8")
        with pytest.raises(OntologyLoadError):
            RdflibOntologyLoader().load(bad)

    def test_import_cycle_loads_each_ontology_once(self, tmp_path: Path) -> None:
        a = tmp_path / "a.ttl"
        b = tmp_path / "b.ttl"
        a.write_text(PREFIXES + "<http://x.org/a> a owl:Ontology ; owl:imports <http://x.org/b> .\n", encoding="utf-8")
        b.write_text(PREFIXES + "<http://x.org/b> a owl:Ontology ; owl:imports <http://x.org/a> .\n", encoding="utf-8")
        closure = RdflibOntologyLoader({"http://x.org/b": b}, allow_remote=False).load(a)
        assert [o.ontology_iri for o in closure.ontologies] == ["http://x.org/a", "http://x.org/b"]


class TestStructuralReasoner:
    def test_direct_superclasses_are_reduced(self) -> None:
        reasoner = make_reasoner(":C rdfs:subClassOf :B , :A .\n:B rdfs:subClassOf :A .\n")
        assert reasoner.direct_superclasses(X + "C") == {X + "B"}
        assert reasoner.direct_superclasses(X + "B") == {X + "A"}

    def test_top_level_class_has_thing_parent(self) -> None:
        reasoner = make_reasoner(":A a owl:Class .\n")
        assert reasoner.direct_superclasses(X + "A") == {OWL_THING}
        assert reasoner.direct_superclasses(OWL_THING) == frozenset()

    def test_explicit_thing_parent_is_kept_only_when_alone(self) -> None:
        reasoner = make_reasoner(":B rdfs:subClassOf :A , owl:Thing .\n:C rdfs:subClassOf owl:Thing .\n")
        assert reasoner.direct_superclasses(X + "B") == {X + "A"}
        assert reasoner.direct_superclasses(X + "C") == {OWL_THING}

    def test_equivalent_classes(self) -> None:
        reasoner = make_reasoner(":A owl:equivalentClass :B .\n:C rdfs:subClassOf :A .\n")
        assert reasoner.equivalent_classes(X + "A") == {X + "A", X + "B"}
        assert reasoner.equivalent_classes(X + "C") == {X + "C"}
        assert reasoner.direct_superclasses(X + "C") == {X + "A", X + "B"}

    def test_subclass_cycle_means_equivalence(self) -> None:
        reasoner = make_reasoner(":A rdfs:subClassOf :B .\n:B rdfs:subClassOf :A .\n:C rdfs:subClassOf :A .\n")
        assert reasoner.equivalent_classes(X + "A") == {X + "A", X + "B"}
        assert reasoner.direct_superclasses(X + "A") == {OWL_THING}
        assert reasoner.direct_superclasses(X + "C") == {X + "A", X + "B"}

    def test_equivalent_to_thing(self) -> None:
        reasoner = make_reasoner(":Top owl:equivalentClass owl:Thing .\n:A rdfs:subClassOf :Top .\n")
        assert OWL_THING in reasoner.equivalent_classes(X + "Top")
        assert reasoner.direct_superclasses(X + "Top") == frozenset()
        assert reasoner.direct_superclasses(X + "A") == {OWL_THING, X + "Top"}

    def test_intersection_conjuncts_are_superclasses(self) -> None:
        reasoner = make_reasoner(
            ":D owl:equivalentClass [ owl:intersectionOf ( :A [ a owl:Restriction ;"
            " owl:onProperty :p ; owl:someValuesFrom :B ] ) ] .\n"
            ":E rdfs:subClassOf [ owl:intersectionOf ( :A :B ) ] .\n"
        )
        assert reasoner.direct_superclasses(X + "D") == {X + "A"}
        assert reasoner.direct_superclasses(X + "E") == {X + "A", X + "B"}

    def test_unknown_class(self) -> None:
        reasoner = make_reasoner(":A a owl:Class .\n")
        assert reasoner.equivalent_classes(X + "Nope") == {X + "Nope"}
        assert reasoner.direct_superclasses(X + "Nope") == {OWL_THING}

    def test_queries_precompute_lazily(self) -> None:
        reasoner = StructuralReasoner(make_graph(":B rdfs:subClassOf :A .\n"))
        assert reasoner.direct_superclasses(X + "B") == {X + "A"}

    def test_dispose(self) -> None:
        reasoner = make_reasoner(":A a owl:Class .\n")
        with reasoner:
            pass
        with pytest.raises(RuntimeError):
            reasoner.direct_superclasses(X + "A")
        with pytest.raises(RuntimeError):
            reasoner.precompute()
        reasoner.dispose()


class TestStructuralReasonerFactory:
    def test_classifies_whole_closure(self, import_closure_files) -> None:
        main, hp = import_closure_files
        closure = RdflibOntologyLoader({HP: hp}, allow_remote=False).load(main)
        with StructuralReasonerFactory().create_reasoner(closure) as reasoner:
            reasoner.precompute()
            assert reasoner.direct_superclasses("http://x.org/main#Disease") == {OBO + "HP_0000118"}
            assert reasoner.direct_superclasses(OBO + "HP_0000118") == {OBO + "HP_0000001"}

    def test_rejects_foreign_ontologies(self) -> None:
        fake = FakeOntology("http://x.org/fake")
        closure = OntologyClosure(root=fake, ontologies=(fake,))
        with pytest.raises(TypeError):
            StructuralReasonerFactory().create_reasoner(closure)
