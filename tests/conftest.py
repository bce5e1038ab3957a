import sys
import os

import pytest

# Add project root to sys.path so tests can import top-level modules like 'scoring', 'storage', 'pipeline', 'cli'.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

CONFIG_ENV_VARS = ('AIMETRICS_HOURLY_RATE', 'AIMETRICS_LICENSE_COST', 'AIMETRICS_MODE')


@pytest.fixture(autouse=True)
def _clean_config_env(monkeypatch):
    """Keep AIMETRICS_* variables from the developer's shell out of scoring config."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
