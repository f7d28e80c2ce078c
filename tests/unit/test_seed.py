"""
Unit tests for SeedImporter.

Tests cover:
- Idempotence across runs
- Case-insensitive natural keys
- Continue-on-error with aggregate counts
- Link normalization, invalidation and notifications
"""

from unittest.mock import AsyncMock

import pytest

from sdk.bridge_sdk import keys
from sdk.bridge_sdk.cache import QueryCache
from sdk.bridge_sdk.errors import TransportError
from sdk.bridge_sdk.memory import InMemoryAuthority, InMemoryBackend
from sdk.bridge_sdk.mutations import MutationCoordinator
from sdk.bridge_sdk.notifications import Level, Notifier
from sdk.bridge_sdk.seed import SeedImporter, natural_key
from sdk.bridge_sdk.seed_data import PARTNER_INTERNSHIPS
from sdk.bridge_sdk.types import Identity, Internship, InternshipInput, SeedResult

ADMIN = Identity("admin-1")


def candidate(title, company="Acme", location="Remote", category="Tech", link="acme.example"):
    return InternshipInput(
        title=title,
        description="desc",
        company=company,
        category=category,
        location=location,
        application_link=link,
    )


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def backend():
    return InMemoryBackend(InMemoryAuthority(admins=[ADMIN]), caller=lambda: ADMIN)


def make_importer(backend, notifier, settings, candidates, cache=None):
    coordinator = MutationCoordinator(cache or QueryCache(settings), backend, notifier, settings)
    return SeedImporter(coordinator, notifier, candidates)


class TestNaturalKey:
    def test_lowercases_all_parts(self):
        record = candidate("Data Intern", company="ACME", location="Tacoma, WA", category="Tech")

        assert natural_key(record) == "data intern|acme|tacoma, wa|tech"

    def test_same_key_for_existing_record(self):
        existing = Internship.from_input(1, candidate("Data Intern"))

        assert natural_key(existing) == natural_key(candidate("DATA INTERN"))


class TestSeedImporter:
    """Tests for SeedImporter.run."""

    @pytest.mark.asyncio
    async def test_first_run_adds_second_run_skips(self, backend, notifier, settings):
        importer = make_importer(backend, notifier, settings, PARTNER_INTERNSHIPS)
        total = len(PARTNER_INTERNSHIPS)

        first = await importer.run()
        second = await importer.run()

        assert first == SeedResult(added=total, skipped=0, failed=0)
        assert second == SeedResult(added=0, skipped=total, failed=0)
        assert notifier.history[-1].message == "All partner internships already exist in the system"

    @pytest.mark.asyncio
    async def test_existing_match_is_case_insensitive(self, backend, notifier, settings):
        """Existing ["Intern A"/"Acme"/"Remote"/"Tech"] vs candidates ["intern a", "Intern B"]."""
        await backend.add_internship(candidate("Intern A"))
        importer = make_importer(
            backend,
            notifier,
            settings,
            [
                candidate("intern a", company="acme", location="remote", category="tech"),
                candidate("Intern B"),
            ],
        )

        result = await importer.run()

        assert result == SeedResult(added=1, skipped=1, failed=0)
        titles = sorted(i.title for i in await backend.get_internships())
        assert titles == ["Intern A", "Intern B"]
        assert notifier.history[-1].message == (
            "Successfully seeded 1 partner internship (1 already existed)"
        )

    @pytest.mark.asyncio
    async def test_candidates_not_deduplicated_against_each_other(self, backend, notifier, settings):
        importer = make_importer(
            backend, notifier, settings, [candidate("Same"), candidate("Same")]
        )

        result = await importer.run()

        assert result == SeedResult(added=2, skipped=0, failed=0)

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_run(self, notifier, settings):
        remote = AsyncMock()
        remote.get_internships.return_value = []
        remote.add_internship.side_effect = [1, RuntimeError("boom"), 3]
        importer = make_importer(
            remote, notifier, settings, [candidate("A"), candidate("B"), candidate("C")]
        )

        result = await importer.run()

        assert result == SeedResult(added=2, skipped=0, failed=1)
        assert remote.add_internship.await_count == 3
        levels = [n.level for n in notifier.history]
        assert levels == [Level.SUCCESS, Level.WARNING]
        assert notifier.history[-1].message == "1 internship failed to add"

    @pytest.mark.asyncio
    async def test_links_normalized_before_insert(self, backend, notifier, settings):
        importer = make_importer(
            backend,
            notifier,
            settings,
            [candidate("A", link="acme.example/apply"), candidate("B", link="   ")],
        )

        await importer.run()

        links = {i.title: i.application_link for i in await backend.get_internships()}
        assert links == {"A": "https://acme.example/apply", "B": "#"}

    @pytest.mark.asyncio
    async def test_snapshot_read_is_not_cached(self, backend, notifier, settings):
        cache = QueryCache(settings)
        await cache.fetch(keys.INTERNSHIPS, AsyncMock(return_value=[]))
        importer = make_importer(backend, notifier, settings, [candidate("A")], cache=cache)

        await importer.run()

        assert "get_internships" in backend.calls
        assert cache.get(keys.INTERNSHIPS).stale

    @pytest.mark.asyncio
    async def test_snapshot_failure_reported_and_raised(self, notifier, settings):
        remote = AsyncMock()
        remote.get_internships.side_effect = RuntimeError("Uncaught Error: offline")
        importer = make_importer(remote, notifier, settings, [candidate("A")])

        with pytest.raises(TransportError):
            await importer.run()

        remote.add_internship.assert_not_awaited()
        assert notifier.history[-1].message == "Failed to seed partner internships: offline"
