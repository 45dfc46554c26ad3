# Tests/Sync/conftest.py
#
#
# Imports
#
# Third-party imports
import pytest
#
# Local imports
from quick_notes.Sync.status import SyncStatusChannel
from sync_factories import FakeStore
#
############################################################################################################################
#
# Functions:

@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def status_channel():
    return SyncStatusChannel()

#
# End of Tests/Sync/conftest.py
########################################################################################################################
