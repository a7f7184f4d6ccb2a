"""Tests for configuration loading and logger setup"""

import json
import logging
from pathlib import Path

import pytest

from quant_engine.utils.config import Config, load_config
from quant_engine.utils.logger import setup_logger


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.strategy.name == "combined"
        assert config.backtest.initial_balance == 10_000
        assert config.backtest.warmup_bars == 50
        assert config.backtest.min_bars == 100
        assert config.ledger.initial_cash == 100_000
        assert config.ledger.storage_key == "finbot_trade_profile"
        assert config.data_source.provider == "alpha_vantage"

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "strategy:\n"
            "  name: combined\n"
            "  tickers: [AAPL, TSLA]\n"
            "  params:\n"
            "    rsi_oversold: 30\n"
            "backtest:\n"
            "  initial_balance: 5000\n"
            "data_source:\n"
            "  provider: synthetic\n"
            "  unknown_key: ignored\n"
            "log_level: DEBUG\n",
            encoding="utf-8",
        )
        config = Config.from_yaml(path)
        assert config.strategy.tickers == ["AAPL", "TSLA"]
        assert config.strategy.params == {"rsi_oversold": 30}
        assert config.backtest.initial_balance == 5000
        assert config.backtest.min_bars == 100
        assert config.data_source.provider == "synthetic"
        assert config.log_level == "DEBUG"

    def test_flat_strategy_keys_become_params(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("strategy:\n  name: combined\n  decision_threshold: 3.5\n", encoding="utf-8")
        config = Config.from_yaml(path)
        assert config.strategy.params == {"decision_threshold": 3.5}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert Config.from_yaml(path) == Config()

    def test_load_config_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"ledger": {"initial_cash": 1234}}), encoding="utf-8")
        assert load_config(path).ledger.initial_cash == 1234

    def test_load_config_missing_file(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml") == Config()

    def test_save_and_reload(self, tmp_path):
        config = Config()
        config.strategy.tickers = ["NVDA"]
        config.strategy.params = {"rsi_overbought": 70}
        path = tmp_path / "out" / "config.yaml"
        config.save_yaml(path)
        assert Config.from_yaml(path) == config

    def test_repository_config_loads(self):
        config = load_config(Path(__file__).parent.parent / "config.yaml")
        assert config.strategy.name == "combined"


class TestLogger:
    @pytest.fixture
    def logger_name(self):
        name = "quant_engine_test_logger"
        yield name
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_file_and_console_handlers(self, tmp_path, logger_name):
        logger = setup_logger(logger_name, level="DEBUG", log_dir=str(tmp_path))
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        logger.info("hello")
        files = list(tmp_path.glob(f"{logger_name}_*.log"))
        assert len(files) == 1

    def test_no_log_dir(self, logger_name):
        logger = setup_logger(logger_name, log_dir=None)
        assert [type(h) for h in logger.handlers] == [logging.StreamHandler]

    def test_repeated_setup_keeps_handlers(self, logger_name):
        setup_logger(logger_name, log_dir=None)
        logger = setup_logger(logger_name, log_dir=None)
        assert len(logger.handlers) == 1
