"""
Pytest configuration and shared fixtures for dendrogram builder tests.

This module provides:
- Small hand-checkable point sets
- Random and clustered point generators
- Configuration fixtures
"""

import os
import numpy as np
import pytest
import structlog

from dendro.config.settings_loader import ConfigManager, Settings

# Set test environment variables
os.environ["TESTING"] = "true"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Route events through stdlib logging so stdout only carries program output.
# No logger caching, so structlog.testing.capture_logs keeps working.
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.dev.ConsoleRenderer(colors=False),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=False,
)


# =============================================================================
# Test Data Generators
# =============================================================================

@pytest.fixture
def four_points():
    """Two tight pairs far apart: A=(0,0), B=(0,1), C=(10,10), D=(10,11)."""
    return np.array([
        [0.0, 0.0],
        [0.0, 1.0],
        [10.0, 10.0],
        [10.0, 11.0],
    ])


@pytest.fixture
def two_points():
    return np.array([[0.0, 0.0], [1.0, 1.0]])


@pytest.fixture
def single_point():
    return np.array([[5.0, 5.0]])


@pytest.fixture
def sample_vectors():
    """Random points without structure."""
    np.random.seed(42)
    return np.random.randn(25, 4)


@pytest.fixture
def clustered_vectors():
    """
    Generate points with clear cluster structure.

    Creates 3 distinct groups of 10 points in 5-D centred at 10 * e_k,
    with small noise.
    """
    np.random.seed(42)
    n_per_cluster = 10
    dim = 5

    vectors = []
    labels = []
    for k in range(3):
        center = np.zeros(dim)
        center[k] = 10.0
        vectors.append(center + np.random.randn(n_per_cluster, dim) * 0.1)
        labels.extend([k] * n_per_cluster)

    return np.vstack(vectors), np.array(labels)


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def clustering_config():
    """Sample clustering configuration."""
    from dendro.core.base_clustering import ClusteringConfig

    return ClusteringConfig(
        algorithm_name="johnson",
        params={"metric": "euclidean"},
        verbose=False,
    )


@pytest.fixture
def default_settings():
    return Settings()


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop cached settings around each test."""
    ConfigManager.reset()
    yield
    ConfigManager.reset()


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for component interactions"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take >1 second"
    )
