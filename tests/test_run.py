from __future__ import annotations

import pytest

from village_combat.web import run


def test_launcher_passes_options_to_uvicorn(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(run.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    assert run.main(["--port", "9001", "--reload"]) == 0
    assert calls == [
        (
            "village_combat.web.main:app",
            {"host": "127.0.0.1", "port": 9001, "reload": True, "log_level": "info"},
        )
    ]


def test_launcher_rejects_out_of_range_port(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(run.uvicorn, "run", lambda app, **kwargs: calls.append(app))

    assert run.main(["--port", "70000"]) == 2
    assert calls == []
