from __future__ import annotations

import importlib.util
import json
import sys
from pathlib import Path
from types import ModuleType

import pytest

from ptu_estimator.feed import RetailFeedError
from ptu_estimator.orchestrator import PricingOrchestrator
from ptu_estimator.service import PricingService
from ptu_estimator.store import PricingStore

SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "fetch_pricing.py"

FALLBACK = {
    "gpt-4o": {
        "paygo": {"eastus2": {"global": {"input": 2.5, "output": 10.0, "cached_input": 1.25}}},
        "ptu": {"eastus2": {"global": 1.0}},
    }
}


async def _offline_query(filter_expression: str, top: int) -> list:
    raise RetailFeedError("offline")


def _load_script(monkeypatch: pytest.MonkeyPatch, *argv: str) -> ModuleType:
    spec = importlib.util.spec_from_file_location("fetch_pricing", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    def _service(settings=None) -> PricingService:
        orchestrator = PricingOrchestrator(
            query=_offline_query, store=PricingStore(), fallback=FALLBACK
        )
        return PricingService(orchestrator)

    monkeypatch.setattr(module, "build_default_service", _service)
    monkeypatch.setattr(module, "configure_logging", lambda level=None: None)
    monkeypatch.setattr(sys, "argv", ["fetch_pricing.py", *argv])
    return module


def test_prints_resolved_pricing(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    module = _load_script(monkeypatch, "gpt-4o", "--deployment-type", "global", "--fail-on-unpriced")
    module.main()
    payload = json.loads(capsys.readouterr().out)
    assert payload["paygo_input"] == 2.5
    assert payload["reserved_monthly"] == 720.0
    assert payload["source"] == "fallback"
    assert payload["is_priced"] is True


def test_fail_on_unpriced_covers_known_model_in_empty_region(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    module = _load_script(
        monkeypatch,
        "gpt-4o",
        "--region",
        "westeurope",
        "--deployment-type",
        "global",
        "--fail-on-unpriced",
    )
    with pytest.raises(SystemExit, match="no pricing available for gpt-4o"):
        module.main()
    payload = json.loads(capsys.readouterr().out)
    assert payload["source"] == "fallback"
    assert payload["is_priced"] is False


def test_unpriced_without_flag_exits_cleanly(monkeypatch: pytest.MonkeyPatch) -> None:
    module = _load_script(monkeypatch, "gpt-7")
    module.main()


def test_list_models(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    module = _load_script(monkeypatch, "--list-models")
    module.main()
    assert "gpt-4o" in capsys.readouterr().out.splitlines()
