import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_hostbot_logging():
    """Drop handlers installed by setup_logging so they don't outlive a test's streams."""
    yield
    root = logging.getLogger("hostbot")
    for h in root.handlers:
        h.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
