"""Annotation indexing for ontologies and classes."""

from typing import Iterable, Mapping, Optional, Sequence

from owlfhir.interfaces import Annotation


def build_annotation_map(annotations: Iterable[Annotation]) -> dict[str, list[str]]:
    """Index literal annotation values by property IRI.

    IRI-valued annotations are skipped; use ``find_iri_annotation`` for those.
    Values keep declaration order and repeated identical values are kept.
    """
    amap: dict[str, list[str]] = {}
    for ann in annotations:
        if ann.is_literal:
            amap.setdefault(ann.property, []).append(ann.value)
    return amap


def find_iri_annotation(annotations: Iterable[Annotation], property_iri: str) -> Optional[str]:
    """Return the first IRI value of ``property_iri``, or None."""
    for ann in annotations:
        if not ann.is_literal and ann.property == property_iri:
            return ann.value
    return None


def first_value(amap: Mapping[str, Sequence[str]], candidates: Iterable[str]) -> Optional[str]:
    """Return the first value of the first candidate property present in ``amap``.

    FHIR only carries one publisher and one description, so later values of the
    matching property are ignored.
    """
    for prop in candidates:
        values = amap.get(prop)
        if values:
            return values[0]
    return None
