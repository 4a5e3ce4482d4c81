# tools package for MCP server tools
# Every module below this directory (except __init__.py and _private files) is a tool unit
# exposing `get_tool() -> {"func": callable, "definition": {...}}`; the server discovers and
# loads them at startup, see core/catalog.py.
