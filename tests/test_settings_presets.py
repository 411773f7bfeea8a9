"""Tests for trading settings and presets."""
from decimal import Decimal

import pytest

from enums.chain import Chain
from enums.preset import Preset
from models.settings import TradingSettings, preset_values
from utils.config import load_config


@pytest.fixture
def config():
    return load_config()


def test_defaults_from_config(config):
    settings = TradingSettings.from_config(config)

    assert settings.default_chain is Chain.SOLANA
    assert settings.buy_amount == Decimal("0.1")
    assert (settings.slippage, settings.take_profit_percent, settings.stop_loss_percent) == (10, 100, -40)
    assert settings.preset is Preset.CUSTOM
    assert not (settings.auto_trade or settings.simulation_mode or settings.bundler_mode or settings.ignore_safety)


@pytest.mark.parametrize(
    "prior",
    [
        TradingSettings(),
        TradingSettings(slippage=33, take_profit_percent=500, stop_loss_percent=-90, preset=Preset.DEGEN),
    ],
)
def test_safe_preset_overwrites_regardless_of_prior(prior, config):
    settings = prior.with_preset(Preset.SAFE, config)

    assert (settings.slippage, settings.take_profit_percent, settings.stop_loss_percent) == (1, 20, -10)
    assert settings.preset is Preset.SAFE


@pytest.mark.parametrize("preset", [Preset.SAFE, Preset.DEGEN, Preset.SNIPE])
def test_presets_are_idempotent(preset, config):
    once = TradingSettings().with_preset(preset, config)
    assert once.with_preset(preset, config) == once


def test_preset_tuples(config):
    assert preset_values(Preset.DEGEN, config) == {"slippage": 25, "take_profit_percent": 300, "stop_loss_percent": -50}
    assert preset_values(Preset.SNIPE, config) == {"slippage": 15, "take_profit_percent": 100, "stop_loss_percent": -25}


def test_custom_keeps_current_values(config):
    prior = TradingSettings(slippage=7, take_profit_percent=60, stop_loss_percent=-15, preset=Preset.SAFE)

    settings = prior.with_preset(Preset.CUSTOM, config)

    assert (settings.slippage, settings.take_profit_percent, settings.stop_loss_percent) == (7, 60, -15)
    assert settings.preset is Preset.CUSTOM


def test_applying_a_preset_returns_a_copy(config):
    prior = TradingSettings()
    prior.with_preset(Preset.DEGEN, config)
    assert prior.slippage == 10 and prior.preset is Preset.CUSTOM


def test_manual_edit_switches_to_custom(config):
    settings = TradingSettings().with_preset(Preset.SNIPE, config).with_values(slippage=3)

    assert settings.preset is Preset.CUSTOM
    assert settings.slippage == 3
    assert settings.take_profit_percent == 100


def test_non_preset_edit_keeps_preset(config):
    settings = TradingSettings().with_preset(Preset.SAFE, config).with_values(default_chain=Chain.BSC)

    assert settings.preset is Preset.SAFE
    assert settings.default_chain is Chain.BSC


def test_config_file_overrides_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("trading:\n  slippage: 4\npresets:\n  safe:\n    slippage: 2\n")

    config = load_config(str(path))

    assert config["trading"]["slippage"] == 4
    assert config["trading"]["take_profit_percent"] == 100
    assert config["presets"]["safe"] == {"slippage": 2, "take_profit_percent": 20, "stop_loss_percent": -10}


def test_missing_config_file_uses_builtins(tmp_path):
    config = load_config(str(tmp_path / "absent.yaml"))
    assert config["quick_buy_amounts"] == ["0.1", "0.5", "1", "3", "5"]
