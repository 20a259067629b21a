"""Pytest configuration for uid_bot tests."""
import random
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

from uid_bot.context import BotContext
from uid_bot.inmemory import InMemoryAccountIssuer, InMemoryChatTransport
from uid_bot.provisioning.naming import NameDeriver


@pytest.fixture
def scratch_root(tmp_path):
    """Create a temporary scratch root for archives."""
    root = tmp_path / 'scratch'
    root.mkdir()
    return root


@pytest.fixture
def names():
    """Deterministic name source."""
    return NameDeriver(rng=random.Random(1234))


@pytest.fixture
def context():
    return BotContext()


@pytest.fixture
def transport():
    return InMemoryChatTransport()


@pytest.fixture
def issuer():
    return InMemoryAccountIssuer()
