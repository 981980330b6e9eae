"""
Shared fixtures for unit tests.

Unit tests never touch a database; services get a mocked session.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_session():
    """
    Mock async database session.

    Returns:
        AsyncMock: Mocked async session for database operations
    """
    session = AsyncMock()
    session.add = MagicMock()
    return session
