from __future__ import annotations

import importlib
from typing import Any

import pytest
from fastapi import FastAPI

from kangaroo_chess import main
from kangaroo_chess.config import Settings


def test_importing_the_app_module_has_no_side_effects(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KANGAROO_PORT", "not-a-port")

    module = importlib.reload(importlib.import_module("kangaroo_chess.app"))

    assert callable(module.create_app)
    assert not hasattr(module, "app")


def test_run_builds_a_single_app_from_the_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    served: list[tuple[Any, dict[str, Any]]] = []
    built: list[Settings] = []
    real_create_app = main.create_app

    def fake_run(app: Any, **kwargs: Any) -> None:
        served.append((app, kwargs))

    def counting_create_app(settings: Settings) -> FastAPI:
        built.append(settings)
        return real_create_app(settings)

    monkeypatch.setattr(main.uvicorn, "run", fake_run)
    monkeypatch.setattr(main, "create_app", counting_create_app)
    monkeypatch.setenv("KANGAROO_PORT", "4100")
    monkeypatch.setenv("KANGAROO_LOG_LEVEL", "warning")

    main.run()

    assert len(built) == 1
    app, kwargs = served[0]
    assert isinstance(app, FastAPI)
    assert app.state.server.settings is built[0]
    assert kwargs == {"host": "0.0.0.0", "port": 4100, "log_level": "warning"}
