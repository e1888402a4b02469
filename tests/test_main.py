import asyncio
import json

import pytest

import hotclaim.main as main_mod
from hotclaim.types import Config


def test_main_exits_nonzero_on_bad_config(tmp_path):
    with pytest.raises(SystemExit) as ei:
        main_mod.main(["--config", str(tmp_path / "missing.json")])
    assert ei.value.code == 1


def test_main_runs_serve_with_loaded_config(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"accounts": [], "state_mode": "static", "log_level": "warning"}),
        encoding="utf-8",
    )
    seen = {}

    async def fake_serve(cfg, stop_evt=None):
        seen["cfg"] = cfg

    monkeypatch.setattr(main_mod, "serve", fake_serve)
    main_mod.main(["--config", str(path)])
    assert seen["cfg"].state_mode == "static"
    assert seen["cfg"].log_level == "WARNING"


def test_serve_waits_for_stop_then_joins_worker(monkeypatch):
    passes = []

    async def fake_run_pass(self):
        passes.append(1)
        return 0

    monkeypatch.setattr(main_mod.BatchScheduler, "run_pass", fake_run_pass)

    async def scenario():
        stop_evt = asyncio.Event()
        task = asyncio.create_task(main_mod.serve(Config(), stop_evt))
        await asyncio.sleep(0.05)
        assert not task.done()
        stop_evt.set()
        await asyncio.wait_for(task, timeout=5)

    asyncio.run(scenario())
    assert passes == [1]
