import pytest

from scoring.utils import (
    ScoringConfig,
    load_config,
    load_preset,
    list_presets,
    clamp,
    finite_or_zero,
    MODE_COMPUTED,
    MODE_FIXED_EXAMPLE,
)

CONFIG_YAML = """
hourly_rate: 100
license_cost: 20
presets:
  cheap:
    license_cost: 5
  demo:
    mode: fixed_example
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'scoring.yaml'
    path.write_text(CONFIG_YAML, encoding='utf-8')
    return str(path)


def test_bundled_config_matches_defaults():
    cfg = load_config()
    assert cfg.mode == MODE_COMPUTED
    assert cfg.velocity_ceiling == 0.26
    assert cfg.hourly_rate == 75.0
    assert cfg.license_cost == 15.0
    assert set(list_presets()) >= {'conservative', 'enterprise', 'demo'}


def test_yaml_values_and_preset(config_file):
    cfg = load_config(config_file)
    assert cfg.hourly_rate == 100.0
    assert cfg.license_cost == 20.0
    assert load_config(config_file, preset='cheap').license_cost == 5.0
    assert load_config(config_file, preset='demo').mode == MODE_FIXED_EXAMPLE


def test_unknown_preset_raises(config_file):
    with pytest.raises(ValueError):
        load_preset('nope', config_file)
    with pytest.raises(ValueError):
        load_config(config_file, preset='nope')


def test_env_overrides_yaml(config_file, monkeypatch):
    monkeypatch.setenv('AIMETRICS_HOURLY_RATE', '150')
    monkeypatch.setenv('AIMETRICS_MODE', MODE_FIXED_EXAMPLE)
    cfg = load_config(config_file)
    assert cfg.hourly_rate == 150.0
    assert cfg.mode == MODE_FIXED_EXAMPLE


def test_explicit_overrides_win(config_file, monkeypatch):
    monkeypatch.setenv('AIMETRICS_HOURLY_RATE', '150')
    cfg = load_config(config_file, overrides={'hourly_rate': 60})
    assert cfg.hourly_rate == 60.0


def test_invalid_values_fall_back(config_file, monkeypatch, caplog):
    monkeypatch.setenv('AIMETRICS_HOURLY_RATE', 'lots')
    monkeypatch.setenv('AIMETRICS_MODE', 'turbo')
    cfg = load_config(config_file, overrides={'license_cost': -1})
    assert cfg.hourly_rate == 100.0
    assert cfg.mode == MODE_COMPUTED
    assert cfg.license_cost == ScoringConfig.license_cost
    assert 'Ignoring invalid value' in caplog.text


def test_missing_file_uses_defaults(tmp_path):
    cfg = load_config(str(tmp_path / 'absent.yaml'))
    assert cfg == ScoringConfig()
    assert list_presets(str(tmp_path / 'absent.yaml')) == []


def test_clamp():
    assert clamp(-1) == 0.0
    assert clamp(2) == 1.0
    assert clamp(float('nan')) == 0.0
    assert clamp('x') == 0.0
    assert clamp(5, 0, 10) == 5.0


def test_finite_or_zero():
    assert finite_or_zero(2.5) == 2.5
    assert finite_or_zero(float('nan')) == 0.0
    assert finite_or_zero(float('-inf')) == 0.0
    assert finite_or_zero(None) == 0.0
    assert finite_or_zero('3') == 3.0
