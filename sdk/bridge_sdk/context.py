"""
Application context.

create_context() builds every client-side component exactly once and wires
them together. Views take what they need from the context; guards are
created per protected view.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .backend import IdentityProvider, RemoteService
from .blobs import BlobIngestor, StagingArea
from .cache import QueryCache
from .config import Settings
from .guard import AccessGuard, DecisionListener, ProfileSetupGate, RedirectListener
from .mutations import MutationCoordinator
from .notifications import Notifier
from .queries import Queries
from .roles import RoleResolver
from .seed import SeedImporter
from .session import SessionStore
from .types import Identity


@dataclass
class AppContext:
    settings: Settings
    notifier: Notifier
    cache: QueryCache
    session: SessionStore
    roles: RoleResolver
    queries: Queries
    mutations: MutationCoordinator
    seeder: SeedImporter
    ingestor: BlobIngestor

    def guard(
        self,
        *,
        require_admin: bool = False,
        require_company: bool = False,
        on_change: DecisionListener | None = None,
        on_redirect: RedirectListener | None = None,
    ) -> AccessGuard:
        """Create a guard for one protected view. Call start() to activate it."""
        return AccessGuard(
            self.session,
            self.cache,
            self.roles,
            require_admin=require_admin,
            require_company=require_company,
            on_change=on_change,
            on_redirect=on_redirect,
        )

    def profile_setup_gate(self, on_prompt: Callable[[Identity], None]) -> ProfileSetupGate:
        return ProfileSetupGate(self.session, self.cache, self.roles, on_prompt)

    def staging_area(self) -> StagingArea:
        """A fresh staging area for one submitting form."""
        return StagingArea(self.ingestor, self.notifier)


def create_context(
    remote: RemoteService,
    identity_provider: IdentityProvider,
    settings: Settings | None = None,
) -> AppContext:
    settings = settings or Settings()
    notifier = Notifier()
    cache = QueryCache(settings)
    session = SessionStore(identity_provider, cache, settings)
    mutations = MutationCoordinator(cache, remote, notifier, settings)
    return AppContext(
        settings=settings,
        notifier=notifier,
        cache=cache,
        session=session,
        roles=RoleResolver(cache, remote),
        queries=Queries(cache, remote, session),
        mutations=mutations,
        seeder=SeedImporter(mutations, notifier),
        ingestor=BlobIngestor(settings),
    )
