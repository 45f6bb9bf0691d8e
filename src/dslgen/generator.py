"""Generator pipeline.

Runs strictly in sequence: open archives, build the catalog, classify methods,
resolve overrides, build the dispatch table and factories, render, write. Any
fatal error raises before the output file is touched; the file itself is
replaced atomically so a reader never sees a partial unit.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .archive import ClassLoader, open_archives
from .catalog import build_catalog
from .classifier import MethodClassifier
from .config import GeneratorConfig
from .dispatch import DispatchTableBuilder
from .document import CompilationUnit
from .emitter import assemble, render, runtime_for
from .factories import build_factories
from .models import Analysis, Warning
from .nullability import NON_NULL_ANNOTATIONS, NULLABLE_ANNOTATIONS, AnnotationNullability, NullabilityOracle
from .quirks import QuirksTable, load_quirks_module
from .resolver import group_candidates


@dataclass
class GeneratorResult:
    """Result of one generator run."""
    output_path: Path
    source: str
    analysis: Analysis
    unit: CompilationUnit
    written: bool = False

    @property
    def warnings(self) -> list[Warning]:
        return self.analysis.warnings


def load_quirks(config: GeneratorConfig) -> QuirksTable:
    """Quirks from the config file, overlaid with the quirks module if set."""
    table = QuirksTable(config.quirks)
    if config.quirks_module:
        table = table.merged(load_quirks_module(config.quirks_module))
    return table


class Generator:
    """One generator run over a fixed configuration."""

    def __init__(
        self,
        config: GeneratorConfig,
        quirks: QuirksTable | None = None,
        oracle: NullabilityOracle | None = None,
    ):
        self.config = config
        self.quirks = quirks if quirks is not None else load_quirks(config)
        self.oracle = oracle
        self.loader: ClassLoader | None = None

    def analyze(self) -> Analysis:
        """Catalog the library and resolve its attributes.

        Raises:
            ArchiveError: if an archive is unreadable or malformed.
            GenerationError: if the root type cannot be resolved.
        """
        archives = open_archives(self.config.archives, self.config.dependencies)
        self.loader = archives.loader
        if self.oracle is None:
            self.oracle = AnnotationNullability(
                self.loader,
                nullable=NULLABLE_ANNOTATIONS | {self.config.nullable_annotation},
                non_null=NON_NULL_ANNOTATIONS | {self.config.nonnull_annotation},
            )

        catalog = build_catalog(archives.entries, self.loader, self.config.root)
        analysis = Analysis(
            root=catalog.root,
            classes=catalog.classes,
            warnings=list(catalog.warnings),
        )

        classifier = MethodClassifier(self.loader, catalog.root, self.oracle)
        for cls in catalog.classes:
            if self.quirks.is_class_excluded(cls.canonical_name):
                analysis.excluded_classes.append(cls.canonical_name)
                continue
            for candidate in classifier.classify(cls):
                if not self.quirks.is_method_excluded(candidate):
                    analysis.candidates.append(candidate)

        analysis.groups = group_candidates(analysis.candidates)
        return analysis

    def build(self, analysis: Analysis) -> CompilationUnit:
        """Turn an analysis into the compilation unit."""
        builder = DispatchTableBuilder(
            root=analysis.root,
            runtime=runtime_for(self.config),
            quirks=self.quirks,
            oracle=self.oracle,
        )
        table = builder.build(analysis.groups)
        factories, factory_warnings = build_factories(analysis.classes, self.quirks)
        analysis.warnings.extend(factory_warnings)
        analysis.warnings.extend(table.warnings)
        return assemble(self.config, table, factories)

    def run(self, write: bool = True) -> GeneratorResult:
        analysis = self.analyze()
        unit = self.build(analysis)
        source = render(unit)
        output_path = self.config.output_path
        if write:
            write_source(source, output_path)
        return GeneratorResult(
            output_path=output_path,
            source=source,
            analysis=analysis,
            unit=unit,
            written=write,
        )


def write_source(source: str, path: Path) -> None:
    """Write the generated unit, replacing any previous file atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(source)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def generate_dsl(
    config: GeneratorConfig,
    quirks: QuirksTable | None = None,
    oracle: NullabilityOracle | None = None,
    write: bool = True,
) -> GeneratorResult:
    """Convenience function to run the whole pipeline."""
    return Generator(config, quirks=quirks, oracle=oracle).run(write=write)
