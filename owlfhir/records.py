"""Terminology records produced by the assemblers.

These are the pipeline's own immutable records. ``owlfhir.bundle`` converts them
into ``fhirbundle`` resources at packaging time.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_VERSION = "NA"


class ContentMode(str, Enum):
    COMPLETE = "complete"
    FRAGMENT = "fragment"


class PropertyType(str, Enum):
    CODING = "Coding"
    BOOLEAN = "boolean"


class ParentRef(BaseModel):
    """Reference to a direct superclass: the parent's system and code."""

    model_config = ConfigDict(frozen=True)

    system: str
    code: str

    def sort_key(self) -> tuple[str, str]:
        return (self.system, self.code)


class ConceptRecord(BaseModel):
    """One class rendered as a terminology concept.

    ``synonyms`` and ``parents`` are stored sorted so that two runs over the same
    input produce identical output.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    display: str
    synonyms: tuple[str, ...] = ()
    parents: tuple[ParentRef, ...] = ()
    root: bool = False
    deprecated: bool = False

    @model_validator(mode="after")
    def display_is_not_a_synonym(self) -> "ConceptRecord":
        if self.display in self.synonyms:
            raise ValueError(f"Concept {self.code!r}: preferred term {self.display!r} listed as a synonym")
        return self


class PropertyDeclaration(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    type: PropertyType
    description: str


class FilterDeclaration(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    operators: tuple[str, ...]
    value: str


PARENT_PROPERTY = PropertyDeclaration(code="parent", type=PropertyType.CODING, description="Parent codes.")
ROOT_PROPERTY = PropertyDeclaration(
    code="root",
    type=PropertyType.BOOLEAN,
    description="Indicates if this concept is a root concept (i.e. Thing is equivalent or a direct parent)",
)
DEPRECATED_PROPERTY = PropertyDeclaration(
    code="deprecated",
    type=PropertyType.BOOLEAN,
    description="Indicates if this concept is deprecated.",
)
ROOT_FILTER = FilterDeclaration(code="root", operators=("=",), value="True or false.")
DEPRECATED_FILTER = FilterDeclaration(code="deprecated", operators=("=",), value="True or false.")


class CodeSystemRecord(BaseModel):
    """One ontology rendered as a code system."""

    model_config = ConfigDict(frozen=True)

    url: str
    version: str = DEFAULT_VERSION
    name: str
    publisher: Optional[str] = None
    description: Optional[str] = None
    status: str = "active"
    content: ContentMode = ContentMode.COMPLETE
    value_set: str
    hierarchy_meaning: str = "is-a"
    properties: tuple[PropertyDeclaration, ...] = (PARENT_PROPERTY, ROOT_PROPERTY, DEPRECATED_PROPERTY)
    filters: tuple[FilterDeclaration, ...] = (ROOT_FILTER, DEPRECATED_FILTER)
    concepts: tuple[ConceptRecord, ...] = Field(default=())

    @property
    def concept_count(self) -> int:
        return len(self.concepts)
