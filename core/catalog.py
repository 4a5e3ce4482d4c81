"""Tool catalog: discovery and loading of tool modules from a directory tree.

Every ``*.py`` file below the tools root is a tool unit, except ``__init__.py``
index files and files or directories starting with ``_``. A unit exposes::

    def get_tool() -> dict:
        return {
            "func": execute,  # callable(arguments: dict) -> result (sync or async)
            "definition": {
                "type": "function",
                "function": {"name": ..., "description": ..., "parameters": {...}},
            },
        }

A unit that fails to load is logged and left out; it never aborts the build.
"""
from __future__ import annotations

import importlib.util
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Sequence

logger = logging.getLogger(__name__)

TOOL_FACTORY = "get_tool"
MODULE_PREFIX = "mcp_tools"


class CatalogError(Exception):
    """Base class for catalog build errors."""


class CatalogRootError(CatalogError):
    """The tools root directory is missing or unreadable."""


class ToolLoadError(CatalogError):
    """A single tool unit could not be loaded."""

    def __init__(self, source: Path, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class DuplicateToolError(ToolLoadError):
    """A tool unit declares a name that an earlier unit already registered."""


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class ToolDefinition:
    """One catalog entry: an implementation plus its function-calling definition."""

    implementation: Callable[[dict[str, Any]], Any]
    definition: Mapping[str, Any]
    source: Path | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "definition", _freeze(self.definition))

    @property
    def function(self) -> Mapping[str, Any] | None:
        """The ``function`` wrapper of the definition, or None when malformed."""
        func = self.definition.get("function")
        return func if isinstance(func, Mapping) else None

    @property
    def name(self) -> str | None:
        func = self.function
        if func is None:
            return None
        name = func.get("name")
        return name if isinstance(name, str) and name else None

    @property
    def description(self) -> str:
        func = self.function
        return (func.get("description") if func else None) or ""

    @property
    def input_schema(self) -> dict[str, Any] | None:
        """A mutable copy of the parameters schema, or None when absent."""
        func = self.function
        params = func.get("parameters") if func else None
        return _thaw(params) if isinstance(params, Mapping) else None

    @property
    def required(self) -> list[str]:
        """Required parameter names in declared order (empty when undeclared)."""
        func = self.function
        params = func.get("parameters") if func else None
        if not isinstance(params, Mapping):
            return []
        required = params.get("required") or ()
        return [str(r) for r in required]


class ToolCatalog:
    """Ordered, read-only collection of ToolDefinition shared by every session."""

    def __init__(self, tools: Sequence[ToolDefinition] = ()):
        self._tools = tuple(tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolCatalog({self.names()!r})"

    def find(self, name: str) -> ToolDefinition | None:
        """Exact, case-sensitive lookup; first match wins."""
        for tool in self._tools:
            if tool.name is not None and tool.name == name:
                return tool
        return None

    def names(self) -> list[str]:
        return [tool.name for tool in self._tools if tool.name is not None]


def discover_tool_files(root: Path) -> list[Path]:
    """Return tool unit paths below `root` in stable, sorted traversal order."""
    files: list[Path] = []

    def _on_error(err: OSError) -> None:
        if err.filename is not None and Path(err.filename) == root:
            raise err
        logger.warning("Skipping unreadable directory %s: %s", err.filename, err.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(("_", ".")))
        for filename in sorted(filenames):
            if not filename.endswith(".py") or filename.startswith("_"):
                continue
            files.append(Path(dirpath) / filename)
    return files


def _module_name(path: Path, root: Path) -> str:
    rel = path.relative_to(root).with_suffix("")
    parts = [part.replace("-", "_").replace(".", "_") for part in rel.parts]
    return ".".join([MODULE_PREFIX, *parts])


def load_tool(path: Path, root: Path) -> ToolDefinition:
    """Import one tool unit and build its ToolDefinition.

    Raises ToolLoadError for any failure so callers can isolate the unit.
    """
    module_name = _module_name(path, root)
    try:
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ToolLoadError(path, "not an importable python file")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
    except ToolLoadError:
        raise
    except (Exception, SystemExit) as e:
        sys.modules.pop(module_name, None)
        raise ToolLoadError(path, f"import failed: {e}") from e

    factory = getattr(module, TOOL_FACTORY, None)
    if not callable(factory):
        raise ToolLoadError(path, f"module does not export {TOOL_FACTORY}()")

    try:
        entry = factory()
    except (Exception, SystemExit) as e:
        sys.modules.pop(module_name, None)
        raise ToolLoadError(path, f"{TOOL_FACTORY}() failed: {e}") from e

    if not isinstance(entry, Mapping):
        raise ToolLoadError(path, f"{TOOL_FACTORY}() must return a mapping, got {type(entry).__name__}")

    func = entry.get("func")
    definition = entry.get("definition")
    if not callable(func):
        raise ToolLoadError(path, "tool did not provide a callable 'func'")
    if not isinstance(definition, Mapping):
        raise ToolLoadError(path, "tool did not provide a 'definition' mapping")

    return ToolDefinition(implementation=func, definition=definition, source=path)


def load_catalog(root: str | Path) -> ToolCatalog:
    """Walk `root`, load every tool unit and return the catalog.

    Raises CatalogRootError when `root` cannot be read. Individual unit failures
    (including duplicate names, where the first loaded unit wins) are logged and
    the unit is skipped.
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise CatalogRootError(f"Tools directory not found: {root}")

    try:
        paths = discover_tool_files(root)
    except OSError as e:
        raise CatalogRootError(f"Tools directory unreadable: {root}: {e}") from e

    logger.info("Discovered %d tool files under %s", len(paths), root)

    tools: list[ToolDefinition] = []
    seen: dict[str, Path] = {}
    failures: list[ToolLoadError] = []
    for path in paths:
        try:
            tool = load_tool(path, root)
            if tool.name is not None and tool.name in seen:
                raise DuplicateToolError(
                    path, f"tool name '{tool.name}' already registered by {seen[tool.name]}"
                )
        except ToolLoadError as e:
            logger.error("Failed to load tool: %s", e, exc_info=e.__cause__ is not None)
            failures.append(e)
            continue

        if tool.name is None:
            logger.warning("Tool in %s has no function definition; it will not be listed or callable", path)
        else:
            seen[tool.name] = path
        tools.append(tool)
        logger.info("Loaded tool %s from %s", tool.name, path.relative_to(root))

    catalog = ToolCatalog(tools)
    logger.info(
        "Total tools registered: %d (%d failed), tool names: %s",
        len(catalog),
        len(failures),
        catalog.names(),
    )
    return catalog
