"""Tests for the run_backtest entry point"""

import sys

import pytest

import run_backtest


@pytest.mark.parametrize("raw, expected", [
    ("rsi_oversold=30", ("rsi_oversold", 30)),
    ("decision_threshold=3.5", ("decision_threshold", 3.5)),
    (" flag = yes ", ("flag", True)),
    ("flag=False", ("flag", False)),
    ("name=combined", ("name", "combined")),
])
def test_parse_param(raw, expected):
    assert run_backtest.parse_param(raw) == expected


def test_main_with_synthetic_data(tmp_path, monkeypatch, capsys):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("log_dir: ''\ndata_source:\n  provider: synthetic\n", encoding="utf-8")
    monkeypatch.setattr(sys, "argv", [
        "run_backtest.py", "--config", str(config_path), "--ticker", "AAPL", "--indicators", "3",
    ])

    run_backtest.main()

    out = capsys.readouterr().out
    assert "[AAPL]" in out
    assert "Backtest Report" in out
    assert "Final Balance" in out


def test_list_strategies(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["run_backtest.py", "--list"])
    run_backtest.main()
    assert "combined" in capsys.readouterr().out
