"""
Scoring utility functions.
Provides configuration loading (YAML file, presets, environment overrides) and small numeric helpers used by the analyzers.
"""
from dataclasses import dataclass, fields, replace
from typing import Dict, Any, Optional
import logging
import math
import os
import yaml

logger = logging.getLogger(__name__)

# filename used for scoring YAML configuration
CONFIG_FILENAME = 'scoring.yaml'

MODE_COMPUTED = 'computed'
MODE_FIXED_EXAMPLE = 'fixed_example'
MODES = (MODE_COMPUTED, MODE_FIXED_EXAMPLE)

# environment variable -> config field
ENV_OVERRIDES = {
    'AIMETRICS_HOURLY_RATE': 'hourly_rate',
    'AIMETRICS_LICENSE_COST': 'license_cost',
    'AIMETRICS_MODE': 'mode',
}


@dataclass(frozen=True)
class ScoringConfig:
    """
    Named scoring parameters. Units are noted per field.
    """
    # productivity strategy: 'computed' or 'fixed_example'
    mode: str = MODE_COMPUTED
    # ratio: observed velocity gain ceiling at 100% acceptance
    velocity_ceiling: float = 0.26
    # ratio: how much developers overstate gain relative to acceptance
    perception_multiplier: float = 1.5
    # ratio: rework assumed when no churn signal is available
    default_rework_rate: float = 0.15
    # minutes credited per accepted suggestion
    minutes_saved_per_acceptance: float = 5.0
    # minutes of review per shown suggestion
    review_minutes_per_suggestion: float = 2.0
    # minutes of fixing per reworked accepted suggestion
    fix_minutes_per_rework: float = 15.0
    # suggestions per shipped feature (coarse proxy)
    suggestions_per_feature: int = 10
    # currency per developer hour
    hourly_rate: float = 75.0
    # currency per seat per month
    license_cost: float = 15.0
    # weeks of activity projected into one month
    weeks_per_month: float = 4.0
    # days used to turn a monthly value into a daily value for break-even
    days_per_month: float = 30.0
    # hidden cost baselines, currency
    technical_debt: float = 5000.0
    maintenance_burden: float = 2000.0
    knowledge_gaps: float = 3000.0
    # months hidden costs are spread over when compared with the monthly value
    hidden_cost_amortization_months: float = 12.0
    # team impact baselines: hours, currency, ratio
    review_time: float = 1.5
    onboarding_cost: float = 500.0
    collaboration_friction: float = 0.2
    # ROI thresholds for the recommendation ladder (ratios)
    strong_roi_threshold: float = 3.0
    positive_roi_threshold: float = 1.5
    marginal_roi_threshold: float = 1.0
    # alert thresholds (ratios)
    churn_alert_threshold: float = 0.4
    clone_alert_threshold: float = 0.15
    # days of history kept in view by the dashboard
    history_days: int = 30


def default_config_path() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), 'config', CONFIG_FILENAME)


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        doc = yaml.safe_load(f) or {}
    return doc if isinstance(doc, dict) else {}


def _coerce_values(base: ScoringConfig, values: Dict[str, Any]) -> ScoringConfig:
    """Return base with every recognised key in values applied, converted to the field's type."""
    updates = {}
    for f in fields(ScoringConfig):
        if f.name not in values or values[f.name] is None:
            continue
        raw = values[f.name]
        default = getattr(base, f.name)
        try:
            updates[f.name] = type(default)(raw)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid value for {f.name}: {raw!r}")
    cfg = replace(base, **updates)
    if cfg.mode not in MODES:
        logger.warning(f"Unknown productivity mode {cfg.mode!r}; using {MODE_COMPUTED}")
        cfg = replace(cfg, mode=MODE_COMPUTED)
    if cfg.license_cost <= 0:
        logger.warning(f"license_cost must be positive; using {ScoringConfig.license_cost}")
        cfg = replace(cfg, license_cost=ScoringConfig.license_cost)
    return cfg


def _env_values() -> Dict[str, Any]:
    values = {}
    for env_var, name in ENV_OVERRIDES.items():
        raw = os.getenv(env_var)
        if raw is not None and raw != '':
            values[name] = raw
    return values


def load_config(path: Optional[str] = None, preset: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> ScoringConfig:
    """
    Load scoring configuration.

    Precedence (lowest to highest): dataclass defaults, YAML top-level values, the named preset,
    AIMETRICS_* environment variables, explicit overrides (e.g. from the CLI).
    A missing or unreadable YAML file falls back to defaults.
    """
    if not path:
        path = default_config_path()
    cfg = ScoringConfig()
    if os.path.exists(path):
        try:
            doc = _read_yaml(path)
            cfg = _coerce_values(cfg, {k: v for k, v in doc.items() if k != 'presets'})
        except (OSError, yaml.YAMLError) as ex:
            logger.warning(f"Failed to read scoring config {path}: {ex}; using defaults")
    if preset:
        cfg = _coerce_values(cfg, load_preset(preset, path))
    cfg = _coerce_values(cfg, _env_values())
    if overrides:
        cfg = _coerce_values(cfg, overrides)
    return cfg


def load_preset(preset_name: str, path: Optional[str] = None) -> Dict[str, Any]:
    """
    Return the raw values of a named preset from the config YAML.
    Raises ValueError if the file is missing/unreadable or the preset does not exist.

    Example:
        values = load_preset('conservative')
    """
    if not path:
        path = default_config_path()
    if not os.path.exists(path):
        raise ValueError(f"Scoring config file not found at: {path}")
    try:
        doc = _read_yaml(path)
    except (OSError, yaml.YAMLError) as ex:
        raise ValueError(f"Failed to load presets from {path}: {ex}")
    presets = doc.get('presets') or {}
    if not isinstance(presets, dict) or preset_name not in presets:
        raise ValueError(f"Preset '{preset_name}' not found in {path}")
    preset_map = presets.get(preset_name) or {}
    return dict(preset_map) if isinstance(preset_map, dict) else {}


def list_presets(path: Optional[str] = None) -> list:
    """Return a list of available preset names from the config YAML (or empty list)."""
    if not path:
        path = default_config_path()
    if not os.path.exists(path):
        return []
    try:
        presets = _read_yaml(path).get('presets') or {}
    except (OSError, yaml.YAMLError):
        return []
    return list(presets.keys()) if isinstance(presets, dict) else []


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]; NaN becomes low."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return low
    if v != v:
        return low
    return max(low, min(high, v))


def non_negative(value: float) -> float:
    return clamp(value, 0.0, float('inf'))


def finite_or_zero(value: float) -> float:
    """float(value) when finite; NaN, infinities and unparsable values become 0."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0
