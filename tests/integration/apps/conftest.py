from __future__ import annotations

import importlib
import json
import logging
from pathlib import Path
from typing import Any

import pytest

REPO_ROOT = Path(__file__).resolve().parents[3]


@pytest.fixture
def build_api_config() -> str:
    return str(REPO_ROOT / "config" / "build_api.yml")


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Apps call `setup_logging(force=True)`; put the root logger back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def no_dotenv(monkeypatch):
    """Ignore any `.env` file and path env vars from the caller's environment."""
    cli_config = importlib.import_module("options_chain_api.cli.config")
    monkeypatch.setattr(cli_config, "load_dotenv", lambda *args, **kwargs: None)
    monkeypatch.delenv("DATA_INPUT_PATH", raising=False)
    monkeypatch.delenv("API_OUTPUT_PATH", raising=False)


@pytest.fixture
def run_help(capsys):
    def _run(mod, expected: str) -> None:
        with pytest.raises(SystemExit) as exc:
            mod.main(["--help"])
        assert exc.value.code == 0
        assert expected in capsys.readouterr().out

    return _run


@pytest.fixture
def run_print_config(capsys):
    def _run(mod, config_path: str, *extra: str) -> dict[str, Any]:
        mod.main(["--config", config_path, "--print-config", *extra])
        return json.loads(capsys.readouterr().out)

    return _run


@pytest.fixture
def options_csv(tmp_path: Path) -> Path:
    path = tmp_path / "option_chain.csv"
    path.write_text(
        "\n".join(
            [
                "date,act_symbol,expiration,strike,call_put,bid,ask,vol,delta,gamma,theta,vega,rho",
                "2024-01-15,AAPL,2024-02-16,150.00,Call,5.10,5.30,120,0.55,0.02,-0.05,0.12,0.03",
                "2024-01-15,AAPL,2024-02-16,150.00,Put,4.80,5.00,80,-0.45,0.02,-0.04,0.11,-0.02",
                "2024-01-15,MSFT,2024-02-16,400.00,C,0,0,0,0.50,0.01,-0.10,0.30,0.05",
                "2024-01-15,SPY,2024-01-19,470.00,P,1.20,1.25,5000,-0.30,0.03,-0.20,0.15,-0.01",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return path
