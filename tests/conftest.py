from __future__ import annotations

import pytest

from destination_effects.core.logging import set_migration_context


@pytest.fixture(autouse=True)
def clean_migration_context():
    """Start and end every test without request or migration context."""
    set_migration_context()
    yield
    set_migration_context()
