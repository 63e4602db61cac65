"""
Shared fixtures: every test gets its own SQLite file selected through DB_PATH.
"""

import os
import shutil
import tempfile

import pytest

from outreach_crm.core import dao


@pytest.fixture
def test_db():
    """Create a temporary database for testing."""
    test_dir = tempfile.mkdtemp()
    db_path = os.path.join(test_dir, "test_crm.db")

    # Override the DB_PATH for this test
    original_db_path = os.environ.get('DB_PATH')
    os.environ['DB_PATH'] = db_path

    from outreach_crm.core import db
    db.init_db()

    yield db_path

    # Cleanup
    if original_db_path:
        os.environ['DB_PATH'] = original_db_path
    else:
        del os.environ['DB_PATH']

    shutil.rmtree(test_dir)


@pytest.fixture
def team(test_db):
    return dao.create_team("Test Team", "owner-1")


@pytest.fixture
def prospect(team):
    return dao.create_prospect({
        'team_id': team.id,
        'first_name': 'Ada',
        'last_name': 'Lovelace',
        'company': 'Analytical Engines',
        'title': 'Founder',
        'source': 'LinkedIn',
        'email': 'ada@engines.io',
    })


@pytest.fixture
def enforce_transitions():
    """Turn on stage transition enforcement for a single test."""
    original = os.environ.get('STAGE_TRANSITIONS_ENFORCED')
    os.environ['STAGE_TRANSITIONS_ENFORCED'] = 'true'
    yield
    if original is None:
        del os.environ['STAGE_TRANSITIONS_ENFORCED']
    else:
        os.environ['STAGE_TRANSITIONS_ENFORCED'] = original
