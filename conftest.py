"""
Configuration file for pytest.

This file configures pytest to properly load environment variables
and provides shared fixtures for tests.
"""
import pytest
import dotenv

import clustervec.config.config_manager as config_module
from clustervec.config.config_manager import ConfigManager
from clustervec.store import ClusteredVectorStore

# Load environment variables from .env file
dotenv.load_dotenv()

# Variables that would otherwise leak into configuration tests
CONFIG_ENV_VARS = [
    "ENVIRONMENT",
    "DEBUG",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_JSON",
    "CLUSTERVEC_SIMILARITY",
    "CLUSTERVEC_CLUSTER_THRESHOLD",
    "CLUSTERVEC_DYNAMIC_CLUSTERING",
    "CLUSTERVEC_RECALCULATE_CENTERS",
    "CLUSTERVEC_MAX_CLUSTERS",
    "CLUSTERVEC_SEARCH_LIMIT",
    "CLUSTERVEC_MIN_SIMILARITY",
    "CLUSTERVEC_SEARCH_ALL_CLUSTERS",
]


@pytest.fixture
def axis_vectors():
    """Unit vectors along the three axes of R^3."""
    return [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]


@pytest.fixture
def store():
    """A store with default options."""
    return ClusteredVectorStore()


@pytest.fixture
def strict_store():
    """A store that puts every non-parallel vector in its own cluster."""
    return ClusteredVectorStore({"similarity": "cosine", "cluster_threshold": 0.99})


@pytest.fixture
def clean_config(monkeypatch, tmp_path):
    """
    Provide a fresh ConfigManager rooted at an empty temporary directory.

    The singleton and the module-level instance are reset before and after the
    test, and configuration environment variables are cleared.
    """
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    ConfigManager._instance = None
    config_module._config_manager = None

    yield tmp_path

    ConfigManager._instance = None
    config_module._config_manager = None
