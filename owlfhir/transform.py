"""End-to-end OWL to FHIR transformation.

``transform(input_path, output_path)`` loads the ontology and its import closure,
resolves the system of every class, classifies the closure once, builds one code
system per ontology, packages the non-empty ones into a batch Bundle and writes
it as pretty-printed UTF-8 JSON.

The run either writes a complete bundle and returns a ``TransformResult``, or
raises an ``OwlFhirError`` and leaves no output file behind.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fhirbundle import Bundle

from owlfhir.bundle import assemble_bundle
from owlfhir.codesystems import assemble_code_system
from owlfhir.config import TransformConfig, load_transform_config
from owlfhir.diagnostics import Diagnostic, DiagnosticKind, DiagnosticsCollector
from owlfhir.errors import MissingOntologyIriError, OutputWriteError
from owlfhir.interfaces import OntologyClosure, OntologyLoaderInterface, ReasonerFactory
from owlfhir.logging import setup_logging
from owlfhir.rdf import RdflibOntologyLoader, StructuralReasonerFactory
from owlfhir.records import CodeSystemRecord
from owlfhir.systems import build_system_context

logger = setup_logging()


class TransformResult(BaseModel):
    """Summary of a successful run."""

    model_config = ConfigDict(frozen=True)

    output_path: Path
    ontology_count: int = Field(..., description="Ontologies in the import closure")
    code_system_count: int = Field(..., description="Code systems written to the bundle")
    concept_count: int = Field(..., description="Concepts across all written code systems")
    diagnostics: tuple[Diagnostic, ...] = ()


def create_code_systems(
    closure: OntologyClosure,
    reasoner_factory: ReasonerFactory,
    config: TransformConfig,
    diagnostics: DiagnosticsCollector,
) -> list[CodeSystemRecord]:
    """Create one code system per ontology in the closure.

    The reasoner is built once, shared by every ontology and disposed when all of
    them have been processed, whether or not assembly succeeds.
    """
    context = build_system_context(closure.ontologies)

    records: list[CodeSystemRecord] = []
    with reasoner_factory.create_reasoner(closure) as reasoner:
        reasoner.precompute()
        for ont in closure.ontologies:
            logger.info({"message": f"Creating code system for ontology {ont.display_name()}"})
            try:
                records.append(assemble_code_system(ont, reasoner, context, config, diagnostics))
            except MissingOntologyIriError as e:
                diagnostics.record(DiagnosticKind.MISSING_ONTOLOGY_IRI, str(e), e.ontology_name)
    return records


def write_bundle(bundle: Bundle, output_path: Path) -> None:
    """Write the bundle as pretty-printed UTF-8 JSON via a temp file then rename.

    Raises:
        OutputWriteError: If the file cannot be written. No partial file is left.
    """
    logger.info({"message": f"Writing bundle to file: {output_path.resolve()}"})
    payload = bundle.to_json(indent=2)
    tmp: Optional[str] = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=output_path.parent, prefix=output_path.name + ".", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.write("\n")
        os.replace(tmp, output_path)
    except OSError as e:
        if tmp is not None:
            try:
                os.unlink(tmp)
            except OSError:
                pass
        raise OutputWriteError(output_path, str(e)) from e


def transform(
    input_path: Path,
    output_path: Path,
    *,
    config: Optional[TransformConfig] = None,
    loader: Optional[OntologyLoaderInterface] = None,
    reasoner_factory: Optional[ReasonerFactory] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> TransformResult:
    """Transform an OWL file into a FHIR Bundle of CodeSystems.

    Args:
        input_path: The input ontology document.
        output_path: Where the Bundle JSON is written.
        config: Run settings. Defaults to ``load_transform_config()``.
        loader: Ontology loader. Defaults to an rdflib loader using the config's
            IRI mappings.
        reasoner_factory: Defaults to ``StructuralReasonerFactory``.
        diagnostics: Collector for recoverable problems; a fresh one by default.

    Returns:
        A summary of the run, including every diagnostic recorded.

    Raises:
        OntologyLoadError: If the input or one of its imports cannot be loaded.
        OutputWriteError: If the output cannot be written.
    """
    diagnostics = diagnostics if diagnostics is not None else DiagnosticsCollector()
    if config is None:
        config = load_transform_config(diagnostics=diagnostics)
    if loader is None:
        loader = RdflibOntologyLoader(config.iri_mappings)
    if reasoner_factory is None:
        reasoner_factory = StructuralReasonerFactory()

    input_path = Path(input_path)
    output_path = Path(output_path)

    closure = loader.load(input_path)
    logger.info({"message": "Creating code systems"})
    records = create_code_systems(closure, reasoner_factory, config, diagnostics)
    bundle = assemble_bundle(records, diagnostics)
    write_bundle(bundle, output_path)

    entries = bundle.entry or []
    result = TransformResult(
        output_path=output_path,
        ontology_count=len(closure.ontologies),
        code_system_count=len(entries),
        concept_count=sum(len(e.resource.concept or []) for e in entries),
        diagnostics=diagnostics.diagnostics,
    )
    logger.info({"message": "Done!", "code_systems": result.code_system_count, "concepts": result.concept_count})
    return result
