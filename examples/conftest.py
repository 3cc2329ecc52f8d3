"""Fixtures for the runnable examples.

``example_app`` executes the ``app.py`` next to the requesting test file
into a throwaway module and hands back its module-level ``app``. Every
test gets a freshly built server that is still accepting routes.
"""

import types
from pathlib import Path

import pytest

from quickrest import QuickRest, ServerState


@pytest.fixture
def example_app(request: pytest.FixtureRequest) -> QuickRest:
    app_path = Path(request.path).with_name("app.py")
    module = types.ModuleType(f"example_{app_path.parent.name}")
    module.__file__ = str(app_path)
    exec(compile(app_path.read_text(), str(app_path), "exec"), module.__dict__)

    app = module.app
    assert isinstance(app, QuickRest)
    assert app.state is ServerState.CONFIGURING
    return app
