import pytest
from flask import Flask

from roster_app.importer import IMPORTER_EXTENSION_KEY, init_importer
from roster_app.importer.registry import get_format_registry, resolve_formats


def build_app(enabled=False, formats=("csv",)):
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY="test-secret",
        TESTING=True,
        IMPORTER_ENABLED=enabled,
        IMPORTER_FORMATS=tuple(formats),
    )

    init_importer(app)
    return app


def test_importer_disabled_registers_stub_cli(monkeypatch):
    called = {"flag": False}

    def record_call(*args, **kwargs):
        called["flag"] = True
        return ()

    monkeypatch.setattr("roster_app.importer.resolve_formats", record_call)

    app = build_app(enabled=False)

    assert called["flag"] is False, "resolve_formats should not run when importer disabled"
    assert "roster_imports" not in app.blueprints
    assert app.extensions[IMPORTER_EXTENSION_KEY]["active_formats"] == ()

    runner = app.test_cli_runner()
    result = runner.invoke(args=["importer"])
    assert result.exit_code != 0
    assert "Importer commands are unavailable" in result.output


def test_importer_enabled_registers_blueprint_and_cli():
    app = build_app(enabled=True, formats=("csv", "xlsx"))

    assert "roster_imports" in app.blueprints
    assert "roster_imports.create_import" in app.view_functions

    runner = app.test_cli_runner()
    result = runner.invoke(args=["importer"])
    assert result.exit_code == 0
    assert "  - csv" in result.output
    assert "  - xlsx" in result.output

    importer_state = app.extensions[IMPORTER_EXTENSION_KEY]
    assert importer_state["enabled"] is True
    assert importer_state["configured_formats"] == ("csv", "xlsx")
    assert [descriptor.name for descriptor in importer_state["active_formats"]] == ["csv", "xlsx"]


def test_unknown_format_fails_fast():
    with pytest.raises(ValueError, match="Unknown importer formats configured: pdf"):
        build_app(enabled=True, formats=("csv", "pdf"))


def test_registry_maps_txt_to_csv_reader():
    registry = get_format_registry()

    assert list(registry) == ["csv", "txt", "xlsx", "json"]
    assert registry["txt"].reader == "csv"
    assert registry["xlsx"].dependencies == ("openpyxl",)
    assert [descriptor.name for descriptor in resolve_formats(("json",))] == ["json"]
