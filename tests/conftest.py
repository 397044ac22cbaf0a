import os
import sys

import pytest


# Ensure the repository's src/ is on sys.path for `from chesscore...` imports
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_PATH = os.path.abspath(os.path.join(REPO_ROOT, "src"))
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)


@pytest.fixture(scope="session")
def tables():
    # Built once per session; verifying every shipped magic is the slow part of startup
    from chesscore.engine.attacks import default_tables

    return default_tables()
