"""Interface definitions for the ontology and classification collaborators.

The transformation core never talks to a parser or a reasoner directly. It
depends on the contracts below:

- **OntologyInterface**: one ontology document. Identity (IRI, version IRI),
  ontology-level annotations, the classes in its signature (imports excluded),
  and the annotations of those classes.
- **OntologyLoaderInterface**: turns an input document into an
  ``OntologyClosure``, the root ontology plus everything it transitively imports.
- **ReasonerInterface**: answers direct-superclass and equivalent-class queries
  over the whole closure. Expensive to build; created once per run and released
  with ``dispose()`` (or by leaving a ``with`` block).

Typical flow:
    1. An OntologyLoaderInterface loads the closure from a file
    2. A ReasonerFactory builds a ReasonerInterface for that closure
    3. The assemblers walk each OntologyInterface and query the reasoner

The concrete implementations live in ``owlfhir.rdf`` (rdflib based). Tests use the
in-memory fakes in ``tests/conftest.py``.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, model_validator

from owlfhir.vocab import RDFS_LABEL


class Annotation(BaseModel):
    """A single annotation assertion on an ontology or class.

    ``value`` holds the lexical form for literals and the IRI string otherwise.
    Anonymous (blank node) values are not represented.
    """

    model_config = ConfigDict(frozen=True)

    property: str = Field(..., description="Annotation property IRI")
    value: str = Field(..., description="Literal lexical form, or IRI")
    is_literal: bool = Field(True, description="False when the value is an IRI")
    datatype: Optional[str] = Field(None, description="Datatype IRI of a literal value")
    language: Optional[str] = Field(None, description="Language tag of a literal value")

    @model_validator(mode="after")
    def _iri_values_have_no_literal_metadata(self) -> "Annotation":
        if not self.is_literal and (self.datatype is not None or self.language is not None):
            raise ValueError("IRI-valued annotations cannot carry a datatype or language")
        return self


class OntologyInterface(ABC):
    """One ontology document from the import closure."""

    @property
    @abstractmethod
    def ontology_iri(self) -> Optional[str]:
        """The ontology's primary IRI, or None for an anonymous ontology."""

    @property
    @abstractmethod
    def version_iri(self) -> Optional[str]:
        """The ontology's version IRI, if declared."""

    @abstractmethod
    def annotations(self) -> list[Annotation]:
        """Ontology-level annotations, in declaration order."""

    @abstractmethod
    def classes(self) -> list[str]:
        """IRIs of the named classes in this ontology's own signature.

        Classes that only appear in imported ontologies are excluded. The list is
        sorted so that every consumer sees the same order.
        """

    @abstractmethod
    def class_annotations(self, class_iri: str) -> list[Annotation]:
        """Annotations asserted on ``class_iri`` in this ontology, in declaration order."""

    @abstractmethod
    def imports(self) -> list[str]:
        """IRIs named by this ontology's import declarations."""

    def display_name(self) -> Optional[str]:
        """First ``rdfs:label`` of the ontology, else its IRI, else None."""
        for ann in self.annotations():
            if ann.is_literal and ann.property == RDFS_LABEL:
                return ann.value
        return self.ontology_iri

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.ontology_iri or 'anonymous'}>"


class OntologyClosure(BaseModel):
    """The root ontology and its transitive imports, root first."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    root: OntologyInterface
    ontologies: tuple[OntologyInterface, ...]

    @model_validator(mode="after")
    def root_is_first(self) -> "OntologyClosure":
        if not self.ontologies or self.ontologies[0] is not self.root:
            raise ValueError("The root ontology must be the first member of the closure")
        return self


class OntologyLoaderInterface(ABC):
    """Load an ontology document and everything it imports."""

    @abstractmethod
    def load(self, source: Path) -> OntologyClosure:
        """Parse ``source`` and resolve its import closure.

        Raises:
            OntologyLoadError: If the document or a required import cannot be
                read or parsed.
        """


class ReasonerInterface(ABC):
    """Class hierarchy queries over a classified import closure.

    Reasoners hold on to large indexes, so they are context managers:

        with factory.create_reasoner(closure) as reasoner:
            reasoner.precompute()
            ...
    """

    @abstractmethod
    def precompute(self) -> None:
        """Compute the class hierarchy. Must be called before querying."""

    @abstractmethod
    def direct_superclasses(self, class_iri: str) -> frozenset[str]:
        """Named direct superclasses of ``class_iri``.

        A class with no asserted or inferred parent has ``owl:Thing`` as its only
        direct superclass. ``owl:Thing`` itself has none.
        """

    @abstractmethod
    def equivalent_classes(self, class_iri: str) -> frozenset[str]:
        """Named classes equivalent to ``class_iri``, including the class itself."""

    @abstractmethod
    def dispose(self) -> None:
        """Release the reasoner's resources. Further queries are invalid."""

    def __enter__(self) -> "ReasonerInterface":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


class ReasonerFactory(Protocol):
    def create_reasoner(self, closure: OntologyClosure) -> ReasonerInterface: ...  # type: ignore
