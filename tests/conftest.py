import os

# Must be set before archivebot.settings is imported anywhere.
os.environ.setdefault("DATABASE_URL", "memory://")
os.environ.setdefault("ARCHIVE_COOKIE", "logged-in-user=test")
os.environ.setdefault("ADMINISTRATOR_IDS", '["admin-1"]')

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from archivebot.core.archive_client import WaybackClient  # noqa: E402
from archivebot.core.errors import NonRetryableDeclined  # noqa: E402
from archivebot.core.models import ResolvedSnapshot, SnapshotHistory  # noqa: E402
from archivebot.core.orchestrator import ArchiveOrchestrator  # noqa: E402
from archivebot.core.sparkline import SnapshotHistoryReader  # noqa: E402
from archivebot.infra.repositories.memory_repo import InMemoryRepository  # noqa: E402


def pytest_configure(config):
    # If pytest-cov is active, enforce 85% coverage minimum.
    if config.pluginmanager.hasplugin('pytest_cov'):
        cov_plugin = config.pluginmanager.getplugin('_cov')
        # Set fail-under dynamically if not provided via CLI
        if cov_plugin is not None and not hasattr(config.option, 'cov_fail_under'):
            config.option.cov_fail_under = 85


@pytest.fixture
def sleeps():
    """Delays requested by the retry loops, recorded instead of slept."""
    return []


@pytest.fixture
def wayback(sleeps):
    return WaybackClient(retry_delay=1.0, poll_attempts=5, poll_initial_delay=1.0,
                         poll_max_delay=30.0, sleep=sleeps.append)


@pytest.fixture
def history_reader():
    return SnapshotHistoryReader()


@pytest.fixture
def memory_repo():
    return InMemoryRepository()


class StubWayback:
    """Stands in for :class:`WaybackClient`; resolves every URL except ``fail`` ones."""

    def __init__(self) -> None:
        self.calls = []

    def resolve(self, url, *, attempts=1, snapshot_first=False, cancel=None):
        self.calls.append((url, attempts, snapshot_first))
        if "fail" in url:
            raise NonRetryableDeclined(520)
        return ResolvedSnapshot(url=f"https://web.archive.org/web/20230101000000/{url}", domain="web.archive.org")


class StubHistory:
    def read(self, url):
        moment = datetime(2023, 1, 1, tzinfo=timezone.utc)
        return SnapshotHistory(moment, moment, "20230101000000", "20230101000000", {"2023": [2] + [0] * 11})


@pytest.fixture
def stub_wayback():
    return StubWayback()


@pytest.fixture
def orchestrator(memory_repo, stub_wayback):
    return ArchiveOrchestrator(memory_repo, client=stub_wayback, history=StubHistory())
