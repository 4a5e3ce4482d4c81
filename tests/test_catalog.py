import os
import sys

import pytest

from core.catalog import (
    CatalogRootError,
    DuplicateToolError,
    ToolCatalog,
    ToolDefinition,
    ToolLoadError,
    discover_tool_files,
    load_catalog,
    load_tool,
)
from tests.conftest import tool_source


def test_loads_tools_recursively_in_sorted_order(tools_dir, write_tool):
    write_tool("b_tool.py", tool_source("b_tool"))
    write_tool("nested/deeper/c_tool.py", tool_source("c_tool"))
    write_tool("a_tool.py", tool_source("a_tool"))

    catalog = load_catalog(tools_dir)

    assert catalog.names() == ["a_tool", "b_tool", "c_tool"]
    assert len(catalog) == 3


def test_order_is_stable_between_builds(tools_dir, write_tool):
    for name in ("zeta", "alpha", "mid"):
        write_tool(f"group-{name}/{name}.py", tool_source(name))

    assert load_catalog(tools_dir).names() == load_catalog(tools_dir).names()


def test_index_and_private_units_are_not_tools(tools_dir, write_tool):
    write_tool("__init__.py", tool_source("from_index"))
    write_tool("_helpers.py", tool_source("from_private"))
    write_tool("_private_dir/hidden.py", tool_source("hidden"))
    write_tool("notes.txt", "not python")
    write_tool("real.py", tool_source("real"))

    assert [p.name for p in discover_tool_files(tools_dir)] == ["real.py"]
    assert load_catalog(tools_dir).names() == ["real"]


def test_broken_units_do_not_abort_the_build(tools_dir, write_tool, caplog):
    write_tool("good.py", tool_source("good"))
    write_tool("syntax_error.py", "def broken(:\n")
    write_tool("import_error.py", "import module_that_does_not_exist_anywhere\n")
    write_tool("no_factory.py", "VALUE = 1\n")
    write_tool("factory_raises.py", "def get_tool():\n    raise RuntimeError('nope')\n")
    write_tool("not_callable.py", "def get_tool():\n    return {'func': 42, 'definition': {}}\n")
    write_tool("exits_on_import.py", "import sys\nsys.exit('missing amadeus_api_url')\n")
    write_tool("exits_in_factory.py", "import sys\n\ndef get_tool():\n    sys.exit(1)\n")

    catalog = load_catalog(tools_dir)

    assert catalog.names() == ["good"]
    assert "Failed to load tool" in caplog.text
    assert "syntax_error.py" in caplog.text
    assert "missing amadeus_api_url" in caplog.text


def test_failed_import_is_not_left_in_sys_modules(tools_dir, write_tool):
    path = write_tool("boom.py", "raise ValueError('at import')\n")

    with pytest.raises(ToolLoadError, match="import failed: at import"):
        load_tool(path, tools_dir)
    assert "mcp_tools.boom" not in sys.modules


def test_exit_at_import_becomes_a_load_error(tools_dir, write_tool):
    path = write_tool("quits.py", "raise SystemExit('no config')\n")

    with pytest.raises(ToolLoadError, match="import failed: no config"):
        load_tool(path, tools_dir)
    assert "mcp_tools.quits" not in sys.modules


def test_duplicate_names_keep_the_first_loaded(tools_dir, write_tool, caplog):
    write_tool("a/search.py", tool_source("search", body="return 'first'"))
    write_tool("b/search.py", tool_source("search", body="return 'second'"))

    catalog = load_catalog(tools_dir)

    assert catalog.names() == ["search"]
    assert catalog.find("search").source.parent.name == "a"
    assert "already registered" in caplog.text


def test_duplicate_error_is_a_load_error():
    assert issubclass(DuplicateToolError, ToolLoadError)


def test_missing_definition_wrapper_still_loads_without_a_name(tools_dir, write_tool):
    write_tool("bare.py", tool_source("bare", definition={"type": "function"}))

    catalog = load_catalog(tools_dir)

    assert len(catalog) == 1
    tool = next(iter(catalog))
    assert tool.function is None
    assert tool.name is None
    assert catalog.names() == []


def test_missing_root_is_fatal(tmp_path):
    with pytest.raises(CatalogRootError):
        load_catalog(tmp_path / "missing")


def test_file_as_root_is_fatal(tmp_path):
    path = tmp_path / "tools.py"
    path.write_text("")
    with pytest.raises(CatalogRootError):
        load_catalog(path)


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs unprivileged posix permissions")
def test_unreadable_root_is_fatal(tools_dir):
    tools_dir.chmod(0)
    try:
        with pytest.raises(CatalogRootError):
            load_catalog(tools_dir)
    finally:
        tools_dir.chmod(0o755)


def test_definition_is_immutable():
    definition = {"function": {"name": "x", "parameters": {"required": ["a"]}}}
    tool = ToolDefinition(implementation=lambda args: None, definition=definition)

    definition["function"]["name"] = "changed"
    with pytest.raises(TypeError):
        tool.definition["function"]["name"] = "y"

    assert tool.name == "x"
    assert tool.required == ["a"]
    schema = tool.input_schema
    schema["required"].append("b")
    assert tool.required == ["a"]


def test_find_is_exact_and_case_sensitive():
    tool = ToolDefinition(implementation=lambda args: None, definition={"function": {"name": "Lookup"}})
    catalog = ToolCatalog([tool])

    assert catalog.find("Lookup") is tool
    assert catalog.find("lookup") is None
    assert catalog.find("Look") is None


def test_bundled_amadeus_tools_load(amadeus_tools_dir):
    catalog = load_catalog(amadeus_tools_dir)

    assert sorted(catalog.names()) == [
        "create_flight_order",
        "get_flight_offers_pricing",
        "request_access_token",
        "search_flight_offers",
        "search_round_trip_flight_offers",
    ]
