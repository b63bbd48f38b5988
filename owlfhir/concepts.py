"""Assemble one OWL class into a ConceptRecord.

For a class this works out:

- **code**: the short form of the class IRI.
- **deprecated**: from a boolean ``deprecated`` annotation (``owl:deprecated``
  or any other property with that local name).
- **parents**: the reasoner's direct superclasses whose system is known.
- **root**: whether the class is equivalent to ``owl:Thing``.
- **display and synonyms**: the first ``rdfs:label`` is the preferred term;
  the other labels and every ``hasExactSynonym`` value are synonyms. Without
  any ``rdfs:label`` the lexicographically smallest synonym candidate is
  promoted to preferred term, and without any candidate the code is displayed.
"""

from typing import Iterable, Optional

from owlfhir.diagnostics import DiagnosticKind, DiagnosticsCollector
from owlfhir.interfaces import Annotation, OntologyInterface, ReasonerInterface
from owlfhir.logging import setup_logging
from owlfhir.records import ConceptRecord, ParentRef
from owlfhir.systems import SystemContext
from owlfhir.vocab import (
    DEPRECATED_SHORT_FORM,
    EXACT_SYNONYM_SHORT_FORM,
    OWL_NOTHING,
    OWL_THING,
    RDFS_LABEL,
    XSD_BOOLEAN,
    short_form,
)

logger = setup_logging()

THING_DISPLAY = "Thing"
_TRUE_LEXICAL_FORMS = frozenset({"true", "1"})
_BOOLEAN_LEXICAL_FORMS = frozenset({"true", "false", "1", "0"})


def is_deprecated(
    class_iri: str,
    annotations: Iterable[Annotation],
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> bool:
    """Return the value of the class's boolean ``deprecated`` annotation.

    Non-boolean literals are ignored with a diagnostic. If the annotation is
    asserted several times, the last boolean value wins.
    """
    deprecated = False
    for ann in annotations:
        if not ann.is_literal or short_form(ann.property) != DEPRECATED_SHORT_FORM:
            continue
        lexical = ann.value.strip().lower()
        if ann.datatype == XSD_BOOLEAN and lexical in _BOOLEAN_LEXICAL_FORMS:
            deprecated = lexical in _TRUE_LEXICAL_FORMS
        else:
            message = f"Found deprecated attribute but it is not boolean: {ann.value!r}"
            if diagnostics is not None:
                diagnostics.record(DiagnosticKind.MALFORMED_ANNOTATION, message, class_iri)
            else:
                logger.warning({"message": message, "class": class_iri})
    return deprecated


def preferred_term(annotations: Iterable[Annotation]) -> Optional[str]:
    """The first literal ``rdfs:label`` value, or None."""
    for ann in annotations:
        if ann.is_literal and ann.property == RDFS_LABEL:
            return ann.value
    return None


def synonym_candidates(annotations: Iterable[Annotation]) -> set[str]:
    """Every literal ``rdfs:label`` and ``hasExactSynonym`` value."""
    candidates: set[str] = set()
    for ann in annotations:
        if not ann.is_literal:
            continue
        if ann.property == RDFS_LABEL or short_form(ann.property) == EXACT_SYNONYM_SHORT_FORM:
            candidates.add(ann.value)
    return candidates


def select_labels(code: str, annotations: list[Annotation]) -> tuple[str, tuple[str, ...]]:
    """Choose the display and the sorted synonyms for a class."""
    preferred = preferred_term(annotations)
    candidates = synonym_candidates(annotations)

    if preferred is None and not candidates:
        return code, ()
    if preferred is None:
        preferred = min(candidates)
    candidates.discard(preferred)
    return preferred, tuple(sorted(candidates))


def parent_refs(class_iri: str, reasoner: ReasonerInterface, context: SystemContext) -> tuple[ParentRef, ...]:
    """Direct superclasses with a known system, sorted by system then code."""
    parents = reasoner.direct_superclasses(class_iri)
    logger.debug({"message": f"Found {len(parents)} parents for concept {class_iri}"})

    refs: set[ParentRef] = set()
    for parent in parents:
        if parent == OWL_NOTHING:
            continue
        system = context.system_for(parent)
        if system is not None:
            refs.add(ParentRef(system=system, code=short_form(parent)))
        else:
            logger.debug({"message": f"Dropping parent {parent} of {class_iri}: unknown system"})
    return tuple(sorted(refs, key=ParentRef.sort_key))


def is_root(class_iri: str, reasoner: ReasonerInterface) -> bool:
    return OWL_THING in reasoner.equivalent_classes(class_iri)


def assemble_concept(
    class_iri: str,
    ontology: OntologyInterface,
    reasoner: ReasonerInterface,
    context: SystemContext,
    code_system_url: str,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> Optional[ConceptRecord]:
    """Build the concept for ``class_iri``, or None if it belongs to another system.

    Args:
        class_iri: The class to convert.
        ontology: The ontology being assembled; labels are read from it.
        reasoner: Classified reasoner for the whole closure.
        context: Per-run system lookup tables.
        code_system_url: Url of the code system being assembled.
        diagnostics: Receives malformed-annotation diagnostics.
    """
    if context.system_for(class_iri) != code_system_url:
        return None

    code = short_form(class_iri)
    annotations = ontology.class_annotations(class_iri)

    display, synonyms = select_labels(code, annotations)
    if class_iri == OWL_THING:
        # The class keeps its own labels as synonyms.
        synonyms = tuple(sorted((set(synonyms) | {display}) - {THING_DISPLAY}))
        display = THING_DISPLAY

    return ConceptRecord(
        code=code,
        display=display,
        synonyms=synonyms,
        parents=parent_refs(class_iri, reasoner, context),
        root=is_root(class_iri, reasoner),
        deprecated=is_deprecated(class_iri, annotations, diagnostics),
    )
