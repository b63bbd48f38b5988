"""IRIs and naming helpers shared by the pipeline.

The pipeline compares plain strings, so the rdflib namespace terms are exported
here already converted with ``str``.
"""

from rdflib.namespace import DC, OWL, RDFS, XSD

RDFS_LABEL = str(RDFS.label)
OWL_THING = str(OWL.Thing)
OWL_NOTHING = str(OWL.Nothing)
DC_SOURCE = str(DC.source)
XSD_BOOLEAN = str(XSD.boolean)

DEPRECATED_SHORT_FORM = "deprecated"
EXACT_SYNONYM_SHORT_FORM = "hasExactSynonym"

# Stand-in system for classes whose declaring ontology has no IRI.
ANONYMOUS_SYSTEM = "ANONYMOUS"


def short_form(iri: str) -> str:
    """Return the local name of an IRI: the text after the last ``#`` or ``/``.

    Trailing separators are ignored, so ``http://x.org/onto/`` gives ``onto``.
    An IRI without any separator is returned unchanged.

    >>> short_form("http://x.org/onto#Foo")
    'Foo'
    >>> short_form("http://purl.obolibrary.org/obo/HP_0000118")
    'HP_0000118'
    """
    trimmed = iri.rstrip("#/")
    cut = max(trimmed.rfind("#"), trimmed.rfind("/"))
    local = trimmed[cut + 1:]
    return local or iri
