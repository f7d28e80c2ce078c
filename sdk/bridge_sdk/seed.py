"""
Idempotent import of the curated partner internships.

A run reads the remote collection once, drops every candidate whose natural
key already exists, and inserts the rest one at a time. A failed insert is
counted and the run carries on.

Known limitations (kept as-is):
    - Candidates are not deduplicated against each other; two identical
      curated entries are both inserted on a first run
    - The existing-key snapshot is taken once, so concurrent runs can both
      insert the same key
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .errors import BridgeError, TransportError, strip_provider_prefix
from .links import normalize_link
from .mutations import Mutation, MutationCoordinator, _plural
from .notifications import Notifier
from .seed_data import PARTNER_INTERNSHIPS
from .types import Internship, InternshipInput, SeedResult

logger = logging.getLogger(__name__)


def natural_key(record: Internship | InternshipInput) -> str:
    """Case-insensitive duplicate-detection key: title|company|location|category."""
    return "|".join(
        part.lower() for part in (record.title, record.company, record.location, record.category)
    )


class SeedImporter:
    """Merges a curated candidate list into the remote internship collection.

    Example:
        >>> result = await SeedImporter(coordinator, notifier).run()
        >>> result
        SeedResult(added=8, skipped=0, failed=0)
    """

    def __init__(
        self,
        coordinator: MutationCoordinator,
        notifier: Notifier,
        candidates: Sequence[InternshipInput] | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._notifier = notifier
        self.candidates: Sequence[InternshipInput] = (
            PARTNER_INTERNSHIPS if candidates is None else candidates
        )

    async def run(self) -> SeedResult:
        """Seed the candidates.

        Per-item failures are only counted. A failure to read the existing
        collection aborts the run before any insert.

        Raises:
            TransportError: If the existing collection cannot be read
        """
        remote = self._coordinator.remote
        try:
            existing = await remote.get_internships()
        except Exception as e:
            self._notifier.error(
                f"Failed to seed partner internships: {strip_provider_prefix(str(e))}"
            )
            if isinstance(e, BridgeError):
                raise
            raise TransportError(str(e), operation="get_internships") from e

        existing_keys = {natural_key(i) for i in existing}
        pending = [c for c in self.candidates if natural_key(c) not in existing_keys]
        skipped = len(self.candidates) - len(pending)

        added = 0
        failed = 0
        for candidate in pending:
            data = InternshipInput(
                title=candidate.title,
                description=candidate.description,
                company=candidate.company,
                category=candidate.category,
                location=candidate.location,
                application_link=normalize_link(candidate.application_link),
            )
            try:
                await remote.add_internship(data)
                added += 1
            except Exception as e:
                logger.error(f"Failed to add internship: {candidate.title}: {e}")
                failed += 1

        result = SeedResult(added=added, skipped=skipped, failed=failed)
        logger.info(f"Seeding finished: {result}")
        self._coordinator.apply_invalidation(Mutation.SEED_INTERNSHIPS)
        self._report(result)
        return result

    def _report(self, result: SeedResult) -> None:
        if result.added > 0:
            message = f"Successfully seeded {_plural(result.added, 'partner internship')}"
            if result.skipped > 0:
                message += f" ({result.skipped} already existed)"
            self._notifier.success(message)
        elif result.skipped > 0:
            self._notifier.info("All partner internships already exist in the system")

        if result.failed > 0:
            self._notifier.warning(f"{_plural(result.failed, 'internship')} failed to add")
