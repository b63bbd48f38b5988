"""
FHIR Terminology Resource Models

Lightweight Pydantic models for the subset of the FHIR R4 CodeSystem and Bundle
resources that the OWL transformation populates.

Field names are snake_case in Python and camelCase on the wire (``valueSet``,
``hierarchyMeaning``, ``resourceType``...). Serialize with ``to_json()`` so the
aliases are used and unset optional fields are left out, as FHIR forbids
``null`` values and empty arrays.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SNOMED_SYSTEM = "http://snomed.info/sct"
SYNONYM_CODE = "900000000000013009"
SYNONYM_DISPLAY = "Synonym (core metadata concept)"


class FhirElement(BaseModel):
    """Base for every FHIR element: camelCase aliases, immutable instances."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize to FHIR JSON (aliases on, ``None`` fields dropped)."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


class Coding(FhirElement):
    """A reference to a code defined by a terminology system."""

    system: Optional[str] = Field(None, description="Identity of the terminology system")
    code: Optional[str] = Field(None, description="Symbol in syntax defined by the system")
    display: Optional[str] = Field(None, description="Representation defined by the system")


SYNONYM_USE = Coding(system=SNOMED_SYSTEM, code=SYNONYM_CODE, display=SYNONYM_DISPLAY)


class Designation(FhirElement):
    """Additional representation for a concept (used here for synonyms)."""

    language: Optional[str] = Field(None, description="Human language of the designation")
    use: Optional[Coding] = Field(None, description="Details how this designation would be used")
    value: str = Field(..., description="The text value for this designation")


class ConceptProperty(FhirElement):
    """A property value for a concept. Exactly one ``value_*`` field is set."""

    code: str = Field(..., description="Reference to a CodeSystem.property.code")
    value_code: Optional[str] = None
    value_coding: Optional[Coding] = None
    value_string: Optional[str] = None
    value_boolean: Optional[bool] = None


class ConceptDefinition(FhirElement):
    """One concept in the code system."""

    code: str = Field(..., description="Code that identifies the concept")
    display: Optional[str] = Field(None, description="Text to display to the user")
    definition: Optional[str] = Field(None, description="Formal definition")
    designation: Optional[List[Designation]] = Field(None, description="Additional representations")
    property: Optional[List[ConceptProperty]] = Field(None, description="Property values")


class PropertyDefinition(FhirElement):
    """Declares a property that concepts in the code system may carry."""

    code: str = Field(..., description="Identifies the property on the concepts")
    uri: Optional[str] = Field(None, description="Formal identifier for the property")
    description: Optional[str] = Field(None, description="Why the property is defined")
    type: Literal["code", "Coding", "string", "integer", "boolean", "dateTime", "decimal"] = Field(
        ..., description="Type of the property value"
    )


class Filter(FhirElement):
    """A filter that can be used in a value set compose statement."""

    code: str = Field(..., description="Code that identifies the filter")
    description: Optional[str] = Field(None, description="How or why the filter is used")
    operator: List[str] = Field(..., description="Operators that can be used with the filter")
    value: str = Field(..., description="What to use for the value")


class CodeSystem(FhirElement):
    """FHIR CodeSystem resource, restricted to the fields the transformation fills."""

    resource_type: Literal["CodeSystem"] = "CodeSystem"
    id: Optional[str] = Field(None, description="Logical id of this resource")
    url: str = Field(..., description="Canonical identifier for this code system")
    version: Optional[str] = Field(None, description="Business version of the code system")
    name: Optional[str] = Field(None, description="Computer-friendly name")
    status: Literal["draft", "active", "retired", "unknown"] = Field(..., description="Publication status")
    publisher: Optional[str] = Field(None, description="Name of the publisher")
    description: Optional[str] = Field(None, description="Natural language description")
    hierarchy_meaning: Optional[Literal["grouped-by", "is-a", "part-of", "classified-with"]] = None
    value_set: Optional[str] = Field(None, description="Canonical reference to the value set with entire code system")
    content: Literal["not-present", "example", "fragment", "complete", "supplement"] = Field(
        ..., description="How much of the content is represented"
    )
    count: Optional[int] = Field(None, ge=0, description="Total concepts in the code system")
    filter: Optional[List[Filter]] = None
    property: Optional[List[PropertyDefinition]] = None
    concept: Optional[List[ConceptDefinition]] = None


class BundleRequest(FhirElement):
    """Transaction/batch related information for one bundle entry."""

    method: Literal["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH"] = Field(..., description="HTTP verb")
    url: str = Field(..., description="URL for the HTTP action, relative to the server base")


class BundleEntry(FhirElement):
    """One resource plus the request that uploads it."""

    full_url: Optional[str] = None
    resource: CodeSystem
    request: BundleRequest


class Bundle(FhirElement):
    """FHIR Bundle resource holding the upload entries."""

    resource_type: Literal["Bundle"] = "Bundle"
    id: Optional[str] = None
    type: Literal["batch", "transaction", "collection"] = Field(..., description="Bundle semantics")
    entry: Optional[List[BundleEntry]] = None
