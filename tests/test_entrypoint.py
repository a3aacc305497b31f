from __future__ import annotations

from reverso_proxy import __main__ as entrypoint


def test_main_serves_the_module_level_app(monkeypatch):
    calls = []
    monkeypatch.setenv("PORT", "3123")
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    entrypoint.main()

    assert len(calls) == 1
    app, kwargs = calls[0]
    assert app == "reverso_proxy.main:app"
    assert kwargs["port"] == 3123
