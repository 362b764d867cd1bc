"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(autouse=True)
def quiet_logs():
    """Keep loguru output limited to errors during tests."""
    logger.remove()
    logger.add(sys.stderr, level="ERROR")
    yield


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def sample_quiz_text():
    """A quiz covering every question type plus a global answer key."""
    return """Question 1 of 4 (Type: MCQ)
Which layer of the OSI model handles routing?
A. Physical
B. Data Link
C. Network
D. Transport
Answer: C

Question 2 of 4
True or False: A switch operates at Layer 2.
Answer: True

Question 3 of 4
The default subnet mask for a Class C network is _____.

Question 4 of 4 (Type: Match)
Match the protocol to its port
1. HTTP
2. SSH
A. 22
B. 80
Answer: 1:B 2:A

Answer Key: 3:255.255.255.0
"""
