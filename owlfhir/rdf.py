"""rdflib implementations of the ontology, loader and reasoner interfaces.

- ``RdflibOntology`` wraps the graph parsed from one ontology document.
- ``RdflibOntologyLoader`` parses the input document and follows ``owl:imports``,
  reading redirected imports from local files (see ``owlfhir.config``).
- ``StructuralReasoner`` answers hierarchy queries from told axioms over the merged
  closure: named ``rdfs:subClassOf`` parents, ``owl:equivalentClass`` between named
  classes, and the named conjuncts of ``owl:intersectionOf`` expressions used as
  superclasses or equivalents. Cycles of subclass axioms collapse into equivalence.
  It does no description-logic inference.
"""

from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Iterator, Mapping, Optional

from rdflib import BNode, Graph, Literal, URIRef
from rdflib.collection import Collection
from rdflib.namespace import OWL, RDF, RDFS, XSD
from rdflib.util import guess_format

from owlfhir.errors import OntologyLoadError
from owlfhir.interfaces import (
    Annotation,
    OntologyClosure,
    OntologyInterface,
    OntologyLoaderInterface,
    ReasonerInterface,
)
from owlfhir.logging import setup_logging
from owlfhir.vocab import OWL_THING

logger = setup_logging()

# Predicates that state axioms rather than annotations.
_AXIOM_PREDICATES = frozenset(
    {
        RDF.type,
        RDFS.subClassOf,
        RDFS.subPropertyOf,
        RDFS.domain,
        RDFS.range,
        OWL.equivalentClass,
        OWL.equivalentProperty,
        OWL.disjointWith,
        OWL.disjointUnionOf,
        OWL.complementOf,
        OWL.unionOf,
        OWL.intersectionOf,
        OWL.oneOf,
        OWL.hasKey,
        OWL.inverseOf,
        OWL.propertyChainAxiom,
        OWL.propertyDisjointWith,
        OWL.sameAs,
        OWL.differentFrom,
        OWL.imports,
        OWL.versionIRI,
    }
)
_CLASS_AXIOM_PREDICATES = (RDFS.subClassOf, OWL.equivalentClass, OWL.disjointWith)
_RESTRICTION_FILLERS = (OWL.someValuesFrom, OWL.allValuesFrom)
_BOOLEAN_CONSTRUCTORS = (OWL.intersectionOf, OWL.unionOf)
_DATA_RANGES = frozenset({RDFS.Literal, RDF.PlainLiteral, RDF.langString, RDF.XMLLiteral})


def _to_annotation(prop: URIRef, value) -> Optional[Annotation]:
    if isinstance(value, Literal):
        return Annotation(
            property=str(prop),
            value=str(value),
            is_literal=True,
            datatype=str(value.datatype) if value.datatype is not None else None,
            language=value.language,
        )
    if isinstance(value, URIRef):
        return Annotation(property=str(prop), value=str(value), is_literal=False)
    return None


def _annotations_of(graph: Graph, node) -> list[Annotation]:
    out: list[Annotation] = []
    for prop, value in graph.predicate_objects(node):
        if prop in _AXIOM_PREDICATES or not isinstance(prop, URIRef):
            continue
        ann = _to_annotation(prop, value)
        if ann is not None:
            out.append(ann)
    return out


def _list_members(graph: Graph, head) -> list:
    if head is None:
        return []
    return list(Collection(graph, head))


def _is_data_range(graph: Graph, node) -> bool:
    return node in _DATA_RANGES or str(node).startswith(str(XSD)) or (node, RDF.type, RDFS.Datatype) in graph


def named_classes(graph: Graph) -> set[URIRef]:
    """Every named class referenced by the graph's class declarations and axioms."""
    found: set[URIRef] = set()
    for class_type in (OWL.Class, RDFS.Class):
        found.update(s for s in graph.subjects(RDF.type, class_type) if isinstance(s, URIRef))
    for pred in _CLASS_AXIOM_PREDICATES:
        for s, o in graph.subject_objects(pred):
            found.update(n for n in (s, o) if isinstance(n, URIRef))
    for pred in _BOOLEAN_CONSTRUCTORS:
        for head in graph.objects(None, pred):
            found.update(n for n in _list_members(graph, head) if isinstance(n, URIRef))
    for pred in _RESTRICTION_FILLERS:
        for filler in graph.objects(None, pred):
            if isinstance(filler, URIRef) and not _is_data_range(graph, filler):
                found.add(filler)
    return found


class RdflibOntology(OntologyInterface):
    """One ontology document held in its own rdflib Graph."""

    def __init__(self, graph: Graph, source: str):
        self.graph = graph
        self.source = source
        self._node = self._find_ontology_node()
        self._classes: Optional[list[str]] = None

    def _find_ontology_node(self):
        nodes = list(self.graph.subjects(RDF.type, OWL.Ontology))
        named = sorted(n for n in nodes if isinstance(n, URIRef))
        if named:
            if len(named) > 1:
                logger.warning({"message": f"Document {self.source} declares several ontologies", "using": str(named[0])})
            return named[0]
        return nodes[0] if nodes else None

    @property
    def ontology_iri(self) -> Optional[str]:
        return str(self._node) if isinstance(self._node, URIRef) else None

    @property
    def version_iri(self) -> Optional[str]:
        if self._node is None:
            return None
        version = self.graph.value(self._node, OWL.versionIRI)
        return str(version) if isinstance(version, URIRef) else None

    def annotations(self) -> list[Annotation]:
        if self._node is None:
            return []
        return _annotations_of(self.graph, self._node)

    def classes(self) -> list[str]:
        if self._classes is None:
            self._classes = sorted(str(c) for c in named_classes(self.graph))
        return list(self._classes)

    def class_annotations(self, class_iri: str) -> list[Annotation]:
        return _annotations_of(self.graph, URIRef(class_iri))

    def imports(self) -> list[str]:
        if self._node is None:
            return []
        return [str(o) for o in self.graph.objects(self._node, OWL.imports) if isinstance(o, URIRef)]


class RdflibOntologyLoader(OntologyLoaderInterface):
    """Load an ontology document and its imports with rdflib.

    Args:
        iri_mappings: Remote ontology IRI to local document. Mapped imports are
            never fetched over the network.
        allow_remote: When False, an import that is not mapped is an error instead
            of a download.
    """

    def __init__(self, iri_mappings: Optional[Mapping[str, Path]] = None, allow_remote: bool = True):
        self.iri_mappings = dict(iri_mappings or {})
        self.allow_remote = allow_remote

    def _parse(self, location: str) -> RdflibOntology:
        graph = Graph()
        try:
            graph.parse(location, format=guess_format(location))
        except Exception as e:
            raise OntologyLoadError(location, f"{type(e).__name__}: {e}") from e
        logger.debug({"message": f"Parsed {len(graph)} triples from {location}"})
        return RdflibOntology(graph, location)

    def _load_import(self, iri: str) -> RdflibOntology:
        local = self.iri_mappings.get(iri)
        if local is not None:
            logger.info({"message": f"Loading import {iri} from {local}"})
            if not local.is_file():
                raise OntologyLoadError(iri, f"mapped file {local} does not exist")
            return self._parse(str(local))
        if not self.allow_remote:
            raise OntologyLoadError(iri, "import is not mapped to a local file and remote loading is disabled")
        logger.info({"message": f"Fetching import {iri}"})
        return self._parse(iri)

    def load(self, source: Path) -> OntologyClosure:
        logger.info({"message": f"Loading ontology from file {source.resolve()}"})
        if not source.is_file():
            raise OntologyLoadError(str(source), "file does not exist")
        root = self._parse(str(source))

        ordered: list[RdflibOntology] = [root]
        requested: set[str] = set()
        loaded_iris: set[str] = {root.ontology_iri} if root.ontology_iri else set()
        queue: deque[RdflibOntology] = deque([root])
        while queue:
            ont = queue.popleft()
            for iri in ont.imports():
                if iri in requested or iri in loaded_iris:
                    continue
                requested.add(iri)
                child = self._load_import(iri)
                if child.ontology_iri is not None:
                    if child.ontology_iri in loaded_iris:
                        continue
                    loaded_iris.add(child.ontology_iri)
                ordered.append(child)
                queue.append(child)

        logger.info({"message": f"Loaded import closure of {len(ordered)} ontologies"})
        return OntologyClosure(root=root, ontologies=tuple(ordered))


class _Groups:
    """Union-find over class IRIs; each set is one equivalence class."""

    def __init__(self) -> None:
        self._parent: dict[str, str] = {}

    def find(self, x: str) -> str:
        parent = self._parent.setdefault(x, x)
        while parent != x:
            grand = self._parent[parent]
            self._parent[x] = grand
            x, parent = parent, grand
        return x

    def union(self, a: str, b: str) -> bool:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return False
        # Keep the lexicographically smaller IRI as representative.
        if rb < ra:
            ra, rb = rb, ra
        self._parent[rb] = ra
        return True

    def members(self) -> dict[str, frozenset[str]]:
        out: dict[str, set[str]] = {}
        for x in list(self._parent):
            out.setdefault(self.find(x), set()).add(x)
        return {rep: frozenset(m) for rep, m in out.items()}


class StructuralReasoner(ReasonerInterface):
    """Told-subsumption reasoner over one rdflib graph (normally the merged closure)."""

    def __init__(self, graph: Graph):
        self._graph: Optional[Graph] = graph
        self._groups: Optional[_Groups] = None
        self._members: dict[str, frozenset[str]] = {}
        self._direct: dict[str, frozenset[str]] = {}
        self._disposed = False

    def _named_conjuncts(self, node) -> Iterator[str]:
        assert self._graph is not None
        for head in self._graph.objects(node, OWL.intersectionOf):
            for member in _list_members(self._graph, head):
                if isinstance(member, URIRef):
                    yield str(member)

    def _told(self, groups: _Groups) -> dict[str, set[str]]:
        assert self._graph is not None
        graph = self._graph
        told: dict[str, set[str]] = {}
        for cls in named_classes(graph):
            groups.find(str(cls))
        groups.find(OWL_THING)

        for sub, sup in graph.subject_objects(RDFS.subClassOf):
            if not isinstance(sub, URIRef):
                continue
            if isinstance(sup, URIRef):
                told.setdefault(str(sub), set()).add(str(sup))
            elif isinstance(sup, BNode):
                told.setdefault(str(sub), set()).update(self._named_conjuncts(sup))

        for a, b in graph.subject_objects(OWL.equivalentClass):
            if isinstance(a, URIRef) and isinstance(b, URIRef):
                groups.union(str(a), str(b))
            elif isinstance(a, URIRef) and isinstance(b, BNode):
                told.setdefault(str(a), set()).update(self._named_conjuncts(b))
            elif isinstance(b, URIRef) and isinstance(a, BNode):
                told.setdefault(str(b), set()).update(self._named_conjuncts(a))
        return told

    @staticmethod
    def _ancestors(start: str, supers: Mapping[str, set[str]]) -> set[str]:
        seen: set[str] = set()
        queue = deque(supers.get(start, ()))
        while queue:
            node = queue.popleft()
            if node in seen:
                continue
            seen.add(node)
            queue.extend(supers.get(node, ()))
        return seen

    def _group_supers(self, groups: _Groups, told: Mapping[str, set[str]]) -> dict[str, set[str]]:
        supers: dict[str, set[str]] = {}
        for sub, sups in told.items():
            rep = groups.find(sub)
            supers.setdefault(rep, set()).update(groups.find(s) for s in sups)
        for rep, sups in supers.items():
            sups.discard(rep)
        return supers

    def precompute(self) -> None:
        if self._disposed:
            raise RuntimeError("Reasoner has been disposed")
        if self._groups is not None:
            return

        groups = _Groups()
        told = self._told(groups)
        supers = self._group_supers(groups, told)

        # A subclass cycle means every class on it is equivalent.
        merged = False
        ancestors = {rep: self._ancestors(rep, supers) for rep in supers}
        for rep, ancs in ancestors.items():
            for anc in ancs:
                if rep in ancestors.get(anc, ()):
                    merged |= groups.union(rep, anc)
        if merged:
            supers = self._group_supers(groups, told)
            ancestors = {rep: self._ancestors(rep, supers) for rep in supers}

        thing = groups.find(OWL_THING)
        direct: dict[str, frozenset[str]] = {}
        for rep, sups in supers.items():
            if rep == thing:
                continue
            candidates = {s for s in sups if s != thing}
            reduced = {
                s for s in candidates
                if not any(s in ancestors.get(t, ()) for t in candidates if t != s)
            }
            direct[rep] = frozenset(reduced)

        self._groups = groups
        self._members = groups.members()
        self._direct = direct
        logger.info({"message": "Classified ontology", "classes": len(self._members), "with_parents": len(direct)})

    def _ensure_ready(self) -> _Groups:
        if self._disposed:
            raise RuntimeError("Reasoner has been disposed")
        if self._groups is None:
            self.precompute()
        assert self._groups is not None
        return self._groups

    def direct_superclasses(self, class_iri: str) -> frozenset[str]:
        groups = self._ensure_ready()
        rep = groups.find(class_iri)
        thing = groups.find(OWL_THING)
        if rep == thing:
            return frozenset()
        parents = self._direct.get(rep) or frozenset({thing})
        out: set[str] = set()
        for parent in parents:
            out.update(self._members.get(parent, frozenset({parent})))
        return frozenset(out)

    def equivalent_classes(self, class_iri: str) -> frozenset[str]:
        groups = self._ensure_ready()
        return self._members.get(groups.find(class_iri), frozenset({class_iri}))

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._graph = None
        self._groups = None
        self._members = {}
        self._direct = {}
        logger.debug({"message": "Reasoner disposed"})


class StructuralReasonerFactory:
    """Builds a StructuralReasoner over the union of every graph in a closure."""

    def create_reasoner(self, closure: OntologyClosure) -> StructuralReasoner:
        merged = Graph()
        for ont in closure.ontologies:
            if not isinstance(ont, RdflibOntology):
                raise TypeError(f"StructuralReasonerFactory needs RdflibOntology instances, got {type(ont).__name__}")
            merged += ont.graph
        logger.info({"message": f"Classifying ontology {closure.root.display_name()}", "triples": len(merged)})
        return StructuralReasoner(merged)
