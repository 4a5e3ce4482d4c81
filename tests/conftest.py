import textwrap
from pathlib import Path

import pytest

from core.config import Settings

ROOT_DIR = Path(__file__).resolve().parent.parent


def tool_source(name, required=("query",), body="return {'echo': args}", is_async=True, definition=None):
    """Source of a tool module following the get_tool() contract."""
    if definition is None:
        definition = {
            "type": "function",
            "function": {
                "name": name,
                "description": f"Test tool {name}.",
                "parameters": {
                    "type": "object",
                    "properties": {r: {"type": "string", "description": r} for r in required},
                    "required": list(required),
                },
            },
        }
    prefix = "async def" if is_async else "def"
    return textwrap.dedent(
        f"""
        {prefix} execute(args):
            {body}

        def get_tool():
            return {{"func": execute, "definition": {definition!r}}}
        """
    )


@pytest.fixture
def tools_dir(tmp_path):
    root = tmp_path / "tools"
    root.mkdir()
    return root


@pytest.fixture
def write_tool(tools_dir):
    def _write(relpath, source):
        path = tools_dir / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def settings(tools_dir):
    return Settings(tools_dir=tools_dir, debug=False)


@pytest.fixture
def amadeus_tools_dir():
    return ROOT_DIR / "tools"


@pytest.fixture
def fresh_sse_app_status(monkeypatch):
    """sse-starlette caches its shutdown event on the first event loop that streams."""
    from sse_starlette import sse

    if hasattr(sse, "AppStatus"):
        monkeypatch.setattr(sse.AppStatus, "should_exit_event", None, raising=False)
