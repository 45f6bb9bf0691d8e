"""Tests for the generator pipeline."""

import json

import pytest

from dslgen.errors import ArchiveError, ConfigError, GenerationError
from dslgen.generator import Generator, GeneratorResult, generate_dsl, load_quirks, write_source
from dslgen.quirks import QuirksTable

from conftest import PKG, WIDGET, method


def source_for(lib, quirks=None, **config):
    return Generator(lib.config(**config), quirks=quirks).run(write=False).source


def case_body(source, name):
    """Lines of one switch case, up to the next case or the end of the switch."""
    body = []
    for line in source.split(f'      case "{name}":\n')[1].splitlines():
        if line.startswith("      case ") or line == "    }":
            break
        body.append(line)
    return body


class TestScenarios:
    """End-to-end behavior for a root setter and its overrides."""

    def test_scenario_a_single_root_branch(self, label_library):
        """Root setter without overrides: one unguarded branch and one wrapper."""
        source = source_for(label_library)
        body = case_body(source, "label")
        assert sum(1 for line in body if line.strip().startswith("if (")) == 1
        assert not any("instanceof Button" in line for line in body)
        assert "public static Void label(Text arg) {" in source

    def test_scenario_b_more_specific_override(self, label_library):
        """Subtype with a narrower value type: guarded branch first, then fallback."""
        label_library.add_class(f"{PKG}.Button", superclass=WIDGET, methods=[
            method("setLabel", f"{PKG}.RichText"),
        ])
        source = source_for(label_library)
        body = case_body(source, "label")
        assert body == [
            "        if (v instanceof Button && arg instanceof RichText) {",
            "          ((Button) v).setLabel((RichText) arg);",
            "          return true;",
            "        }",
            "        if (arg instanceof Text) {",
            "          v.setLabel((Text) arg);",
            "          return true;",
            "        }",
            "        break;",
        ]
        assert "public static Void label(RichText arg) {" in source
        assert "public static Void label(Text arg) {" in source
        assert source.index("label(RichText arg)") < source.index("label(Text arg)")

    def test_scenario_c_identical_override(self, label_library):
        """Redeclaring the inherited setter changes nothing."""
        baseline = source_for(label_library)
        label_library.add_class(f"{PKG}.Button", superclass=WIDGET, methods=[
            method("setLabel", f"{PKG}.Text"),
        ])
        assert source_for(label_library) == baseline

    def test_scenario_d_quirk_replacement(self, label_library):
        """A quirk replaces the default branch verbatim."""
        custom = 'if (arg instanceof CharSequence) {\n  v.setLabel(new Text(arg.toString()));\n  return true;\n}'
        quirks = QuirksTable({WIDGET: {"setLabel:Text": custom}})
        source = source_for(label_library, quirks=quirks)
        body = case_body(source, "label")
        assert body == ["        " + line for line in custom.split("\n")] + ["        break;"]
        assert "v.setLabel((Text) arg);" not in source

    def test_inherited_narrower_setter_dispatched_first(self, library):
        """A subtype's wider setter never hides a narrower inherited one."""
        library.add_class(WIDGET)
        library.add_class(f"{PKG}.Text")
        library.add_class(f"{PKG}.RichText", superclass=f"{PKG}.Text")
        library.add_class(f"{PKG}.B", superclass=WIDGET, methods=[
            method("setLabel", f"{PKG}.RichText"),
        ])
        library.add_class(f"{PKG}.C", superclass=f"{PKG}.B", methods=[
            method("setLabel", f"{PKG}.Text"),
        ])
        guards = [line.strip() for line in case_body(source_for(library), "label")
                  if line.strip().startswith("if (")]
        assert guards == [
            "if (v instanceof B && arg instanceof RichText) {",
            "if (v instanceof C && arg instanceof Text) {",
        ]

    def test_quirks_from_config(self, label_library):
        """Config-file quirks are applied without a quirks module."""
        config = label_library.config(quirks={WIDGET: {"setLabel": "return false;"}})
        source = Generator(config).run(write=False).source
        assert "        return false;\n        break;\n" in source


class TestGenerator:
    """Test the whole pipeline."""

    def test_analyze(self, widgets):
        analysis = Generator(widgets.config()).analyze()
        assert analysis.root.name == WIDGET
        assert len(analysis.classes) == 7
        assert [w.code for w in analysis.warnings] == ["UNRESOLVABLE_CLASS"]

    def test_run_writes_file(self, widgets):
        config = widgets.config()
        result = Generator(config).run()
        assert isinstance(result, GeneratorResult)
        assert result.written
        assert result.output_path == config.output_dir / "com/example/dsl/WidgetDSL.java"
        assert result.output_path.read_text() == result.source
        assert result.warnings is result.analysis.warnings

    def test_dry_run_does_not_write(self, widgets):
        result = Generator(widgets.config()).run(write=False)
        assert not result.written
        assert not result.output_path.exists()

    def test_generate_dsl(self, widgets):
        result = generate_dsl(widgets.config(), write=False)
        assert "public final class WidgetDSL" in result.source

    def test_deterministic(self, widgets):
        """Identical inputs produce byte-identical output."""
        assert source_for(widgets) == source_for(widgets)

    def test_archive_format_does_not_matter(self, widgets):
        """A bundle and a zip archive with the same descriptors generate the same unit."""
        from_bundle = source_for(widgets)
        from_zip = source_for(widgets, archives=[widgets.write_zip()])
        assert from_bundle == from_zip

    def test_entry_order_does_not_matter(self, widgets, tmp_path):
        reversed_path = tmp_path / "reversed.json"
        bundle = widgets.bundle()
        bundle["entries"] = dict(reversed(list(bundle["entries"].items())))
        reversed_path.write_text(json.dumps(bundle))
        assert source_for(widgets) == source_for(widgets, archives=[reversed_path])

    def test_excluded_class(self, widgets):
        """A class aliased to false gets neither a factory nor attributes."""
        quirks = QuirksTable({f"{PKG}.Toggle": {"__classAlias": False}})
        result = Generator(widgets.config(), quirks=quirks).run(write=False)
        assert result.analysis.excluded_classes == [f"{PKG}.Toggle"]
        assert "toggle()" not in result.source
        assert 'case "checked"' not in result.source
        assert "instanceof Toggle" not in result.source

    def test_excluded_method(self, widgets):
        quirks = QuirksTable({f"{PKG}.Slider": {"setValue": False}})
        source = source_for(widgets, quirks=quirks)
        assert 'case "value"' not in source
        assert "setValue" not in source

    def test_warnings_collected(self, library):
        """Recoverable problems become warnings on a successful run."""
        library.add_class(WIDGET, methods=[method("setDefault", "int")])
        library.add_class(f"{PKG}.Switch", superclass=WIDGET)
        library.add_class(f"{PKG}.Map", superclass=WIDGET, methods=[method("setApi", "com.vendor.Api")])
        result = Generator(library.config()).run()
        assert [w.code for w in result.warnings] == [
            "UNRESOLVABLE_CLASS", "RESERVED_IDENTIFIER", "RESERVED_IDENTIFIER",
        ]
        assert result.output_path.exists()


class TestFatalErrors:
    """Fatal errors abort without touching the previous output."""

    @pytest.fixture
    def previous(self, widgets):
        config = widgets.config()
        result = Generator(config).run()
        return config, result.output_path.read_text()

    def test_malformed_archive(self, previous):
        config, before = previous
        config.archives[0].write_text("{broken")
        with pytest.raises(ArchiveError):
            Generator(config).run()
        assert config.output_path.read_text() == before

    def test_missing_root(self, previous):
        config, before = previous
        config.root = "com.example.widget.Nope"
        with pytest.raises(GenerationError):
            Generator(config).run()
        assert config.output_path.read_text() == before

    def test_bad_quirk(self, previous):
        config, before = previous
        quirks = QuirksTable({f"{PKG}.Slider": {"setValue": lambda c: 1}})
        with pytest.raises(ConfigError):
            Generator(config, quirks=quirks).run()
        assert config.output_path.read_text() == before


class TestWriteSource:
    """Test atomic output writing."""

    def test_creates_directories(self, tmp_path):
        path = tmp_path / "a" / "b" / "X.java"
        write_source("class X {}\n", path)
        assert path.read_text() == "class X {}\n"

    def test_replaces_and_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "X.java"
        path.write_text("old\n")
        write_source("new\n", path)
        assert path.read_text() == "new\n"
        assert [p.name for p in tmp_path.iterdir()] == ["X.java"]


class TestLoadQuirks:
    def test_config_quirks_only(self, widgets):
        quirks = load_quirks(widgets.config(quirks={WIDGET: {"setTag": False}}))
        assert quirks.entries == {WIDGET: {"setTag": False}}

    def test_module_entries_win(self, widgets, tmp_path, monkeypatch):
        (tmp_path / "generator_quirks.py").write_text(
            f"QUIRKS = {{'{WIDGET}': {{'setTag': '// from module'}}}}\n"
        )
        monkeypatch.syspath_prepend(str(tmp_path))
        config = widgets.config(
            quirks={WIDGET: {"setTag": False, "setAlpha": False}},
            quirks_module="generator_quirks:QUIRKS",
        )
        quirks = load_quirks(config)
        assert quirks.entries[WIDGET] == {"setTag": "// from module", "setAlpha": False}
