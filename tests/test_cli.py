"""Tests for the CLI module."""

import json

import pytest
from typer.testing import CliRunner

from dslgen import __version__
from dslgen.cli import _build_config, app

from conftest import WIDGET

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every command from an empty directory so no config file is discovered."""
    monkeypatch.chdir(tmp_path)


def base_args(lib):
    return [
        "--archive", str(lib.write()),
        "--root", WIDGET,
    ]


class TestVersionCommand:
    """Test the version command."""

    def test_version_output(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "dslgen version" in result.stdout
        assert __version__ in result.stdout


class TestGenerateCommand:
    """Test the generate command."""

    def test_generate_writes_file(self, widgets, tmp_path):
        out = tmp_path / "gen"
        result = runner.invoke(app, [
            "generate", *base_args(widgets),
            "--package", "com.example.dsl",
            "--class-name", "Views",
            "--output", str(out),
        ])
        assert result.exit_code == 0
        assert "Generated successfully" in result.stdout
        path = out / "com/example/dsl/Views.java"
        assert path.exists()
        assert "public final class Views" in path.read_text()

    def test_generate_prints_warnings(self, widgets, tmp_path):
        result = runner.invoke(app, [
            "generate", *base_args(widgets),
            "--package", "com.example.dsl",
            "--class-name", "Views",
            "--output", str(tmp_path / "gen"),
        ])
        assert result.exit_code == 0
        assert "Warnings:" in result.stdout
        assert "[UNRESOLVABLE_CLASS] com.example.widget.Broken" in result.stdout

    def test_generate_stdout(self, widgets, tmp_path):
        """Should print the source without writing anything."""
        out = tmp_path / "gen"
        result = runner.invoke(app, [
            "generate", *base_args(widgets),
            "--package", "com.example.dsl",
            "--class-name", "Views",
            "--output", str(out),
            "--stdout",
        ])
        assert result.exit_code == 0
        assert result.stdout.startswith("package com.example.dsl;")
        assert not out.exists()

    def test_generate_from_config_file(self, widgets, tmp_path):
        archive = widgets.write()
        config = tmp_path / "dslgen.toml"
        config.write_text(
            f'root = "{WIDGET}"\n'
            'package = "com.example.dsl"\n'
            'class-name = "WidgetDSL"\n'
            f'archives = ["{archive.name}"]\n'
            'output-dir = "generated"\n'
        )
        result = runner.invoke(app, ["generate", "--config", str(config)])
        assert result.exit_code == 0
        assert (tmp_path / "generated/com/example/dsl/WidgetDSL.java").exists()

    def test_discovers_config_in_cwd(self, widgets, tmp_path):
        archive = widgets.write()
        (tmp_path / "pyproject.toml").write_text(
            "[tool.dslgen]\n"
            f'root = "{WIDGET}"\n'
            'package = "com.example.dsl"\n'
            'class-name = "WidgetDSL"\n'
            f'archives = ["{archive.name}"]\n'
        )
        result = runner.invoke(app, ["generate", "--stdout"])
        assert result.exit_code == 0
        assert "public final class WidgetDSL" in result.stdout

    def test_missing_settings(self, widgets):
        result = runner.invoke(app, ["generate", *base_args(widgets)])
        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert "Missing required settings" in result.stdout

    def test_fatal_error_exits(self, widgets, tmp_path):
        """A missing root is fatal and reported."""
        result = runner.invoke(app, [
            "generate",
            "--archive", str(widgets.write()),
            "--root", "com.example.Missing",
            "--package", "com.example.dsl",
            "--class-name", "Views",
        ])
        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert not (tmp_path / "generated").exists()

    def test_nonexistent_archive(self, tmp_path):
        result = runner.invoke(app, ["generate", "--archive", str(tmp_path / "nope.json")])
        assert result.exit_code != 0


class TestInspectCommand:
    """Test the inspect command."""

    def test_inspect_output(self, widgets):
        result = runner.invoke(app, ["inspect", *base_args(widgets)])
        assert result.exit_code == 0
        assert "Widget Classes" in result.stdout
        assert "com.example.widget.Slider" in result.stdout
        assert "onChange" in result.stdout
        assert "Summary" in result.stdout

    def test_inspect_json(self, widgets):
        result = runner.invoke(app, ["inspect", *base_args(widgets), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["root"] == WIDGET
        assert [c["name"] for c in data["classes"]][-1] == WIDGET
        text = next(g for g in data["groups"] if g["name"] == "text")
        assert [b["declaring_class"] for b in text["branches"]] == [
            "com.example.widget.RichText",
            "com.example.widget.TextWidget",
            "com.example.widget.Toggle",
        ]
        assert data["warnings"][0]["code"] == "UNRESOLVABLE_CLASS"

    def test_inspect_no_classes(self, library):
        """A root that is not scanned leaves the catalog empty."""
        library.add_class("com.example.util.Helper")
        scanned = library.write("helpers.json")
        library.entries.clear()
        library.add_class(WIDGET)
        root_archive = library.write("root.json")
        result = runner.invoke(app, [
            "inspect",
            "--archive", str(scanned),
            "--dependency", str(root_archive),
            "--root", WIDGET,
        ])
        assert result.exit_code == 0
        assert "No eligible widget classes found" in result.stdout

    def test_inspect_missing_root(self, widgets):
        result = runner.invoke(app, [
            "inspect", "--archive", str(widgets.write()), "--root", "com.example.Missing",
        ])
        assert result.exit_code == 1
        assert "Error:" in result.stdout


class TestBuildConfig:
    """Test the config helper shared by commands."""

    def test_overrides_applied(self, widgets):
        config = _build_config(
            None, [widgets.write()], None, WIDGET, "com.example.dsl", "Views", None, None,
        )
        assert config.class_name == "Views"
        assert config.dependencies == []

    def test_error_exits(self):
        import typer
        with pytest.raises(typer.Exit):
            _build_config(None, None, None, None, None, None, None, None)
