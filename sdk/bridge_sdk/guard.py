"""
Access gating for protected views.

The decision is a pure function of three inputs: identity presence, the
caller-profile read and the admin-flag read. AccessGuard re-evaluates it
whenever an input changes; it keeps only the last decision so it can tell
observers about changes.

States:
    LOADING -> UNAUTHENTICATED            (no identity; redirect to "/")
    LOADING -> AUTHENTICATED_NO_PROFILE   (identity, profile absent)
    LOADING -> AUTHENTICATED_WITH_PROFILE (identity, profile, capability held)
    LOADING -> DENIED(not-admin | not-company)

Invariants:
    - LOADING until both reads have settled (value or error)
    - Never redirect while LOADING; redirect once per entry into UNAUTHENTICATED
    - Denial is a state, never an exception
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from . import keys
from .cache import CacheEntry, CacheStatus, QueryCache, Subscription
from .roles import RoleResolver
from .session import SessionStore
from .types import Absent, AccountType, Identity, Present

logger = logging.getLogger(__name__)

LANDING_PATH = "/"


class GuardState(Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_NO_PROFILE = "authenticated_no_profile"
    AUTHENTICATED_WITH_PROFILE = "authenticated_with_profile"
    DENIED = "denied"


class DenyReason(Enum):
    NOT_ADMIN = "not-admin"
    NOT_COMPANY = "not-company"


@dataclass(frozen=True)
class ReadState:
    """What the guard needs to know about one cached read."""

    settled: bool = False
    value: Any = None
    error: BaseException | None = None

    @classmethod
    def from_entry(cls, entry: CacheEntry | None) -> ReadState:
        if entry is None:
            return cls()
        return cls(
            settled=entry.settled,
            value=entry.value if entry.has_value else None,
            error=entry.error,
        )


@dataclass(frozen=True)
class GuardDecision:
    """Outcome of evaluating a guard.

    Attributes:
        state: Guard state
        reason: Why access was denied (DENIED only)
        redirect_to: Path to navigate to (UNAUTHENTICATED only)
        profile_error: Profile read failure, if the profile state is unknown
    """

    state: GuardState
    reason: DenyReason | None = None
    redirect_to: str | None = None
    profile_error: BaseException | None = None

    @property
    def allowed(self) -> bool:
        return self.state is GuardState.AUTHENTICATED_WITH_PROFILE


def evaluate_access(
    identity_present: bool,
    profile: ReadState,
    admin: ReadState,
    *,
    require_admin: bool = False,
    require_company: bool = False,
) -> GuardDecision:
    """Compute the guard decision from its three inputs.

    A failed profile read is reported as AUTHENTICATED_NO_PROFILE with
    profile_error set; it is not treated as a confirmed absence.
    """
    if not (profile.settled and admin.settled):
        return GuardDecision(GuardState.LOADING)

    if not identity_present:
        return GuardDecision(GuardState.UNAUTHENTICATED, redirect_to=LANDING_PATH)

    if not isinstance(profile.value, Present):
        return GuardDecision(GuardState.AUTHENTICATED_NO_PROFILE, profile_error=profile.error)

    if require_admin and admin.value is not True:
        return GuardDecision(GuardState.DENIED, reason=DenyReason.NOT_ADMIN)

    if require_company and profile.value.value.account_type is not AccountType.COMPANY:
        return GuardDecision(GuardState.DENIED, reason=DenyReason.NOT_COMPANY)

    return GuardDecision(GuardState.AUTHENTICATED_WITH_PROFILE)


DecisionListener = Callable[[GuardDecision], None]
RedirectListener = Callable[[str], None]


class AccessGuard:
    """Reactive guard for one protected view.

    Example:
        >>> guard = context.guard(require_admin=True, on_redirect=router.navigate)
        >>> await guard.start()
        >>> guard.decision.state
        <GuardState.AUTHENTICATED_WITH_PROFILE: 'authenticated_with_profile'>
        >>> guard.stop()
    """

    def __init__(
        self,
        session: SessionStore,
        cache: QueryCache,
        roles: RoleResolver,
        *,
        require_admin: bool = False,
        require_company: bool = False,
        on_change: DecisionListener | None = None,
        on_redirect: RedirectListener | None = None,
    ) -> None:
        self._session = session
        self._cache = cache
        self._roles = roles
        self.require_admin = require_admin
        self.require_company = require_company
        self._on_change = on_change
        self._on_redirect = on_redirect
        self._subscriptions: list[Subscription] = []
        self._unsubscribe_session: Callable[[], None] | None = None
        self._loads: set[asyncio.Task[Any]] = set()
        self._redirected = False
        self.decision = GuardDecision(GuardState.LOADING)

    @property
    def active(self) -> bool:
        return self._unsubscribe_session is not None

    def evaluate(self) -> GuardDecision:
        """Evaluate against the current session and cache contents."""
        return evaluate_access(
            self._session.current_identity() is not None,
            ReadState.from_entry(self._cache.get(keys.CALLER_PROFILE)),
            ReadState.from_entry(self._cache.get(keys.ADMIN_FLAG)),
            require_admin=self.require_admin,
            require_company=self.require_company,
        )

    async def start(self) -> GuardDecision:
        """Subscribe to inputs, load both reads and return the settled decision."""
        if not self.active:
            self._subscriptions = [
                self._cache.subscribe(keys.CALLER_PROFILE, self._on_entry),
                self._cache.subscribe(keys.ADMIN_FLAG, self._on_entry),
            ]
            self._unsubscribe_session = self._session.subscribe(self._on_identity)
        self._recompute()
        await self._load()
        return self.decision

    def stop(self) -> None:
        """Detach from all inputs. Later results are ignored."""
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions = []
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None
        for task in self._loads:
            task.cancel()
        self._loads.clear()

    async def _load(self) -> None:
        results = await asyncio.gather(
            self._roles.profile(), self._roles.is_admin(), return_exceptions=True
        )
        for result in results:
            # Failures are retained on the cache entries and reflected in the decision
            if isinstance(result, Exception):
                logger.debug(f"Guard read failed: {result}")
        if self.active:
            self._recompute()

    def _on_entry(self, entry: CacheEntry) -> None:
        self._recompute()

    def _on_identity(self, identity: Identity | None) -> None:
        self._recompute()
        task = asyncio.get_running_loop().create_task(self._load())
        self._loads.add(task)
        task.add_done_callback(self._loads.discard)

    def _recompute(self) -> None:
        decision = self.evaluate()
        if decision == self.decision:
            return
        self.decision = decision
        logger.debug(f"Guard -> {decision.state.value}")
        if self._on_change:
            self._on_change(decision)

        if decision.state is GuardState.UNAUTHENTICATED:
            if not self._redirected and decision.redirect_to and self._on_redirect:
                self._redirected = True
                self._on_redirect(decision.redirect_to)
        else:
            self._redirected = False


class ProfileSetupGate:
    """Prompts profile setup once per authenticated session.

    Fires when the profile read settles successfully as absent for the
    current identity. A failed read never prompts. The gate re-arms when the
    identity changes.
    """

    def __init__(
        self,
        session: SessionStore,
        cache: QueryCache,
        roles: RoleResolver,
        on_prompt: Callable[[Identity], None],
    ) -> None:
        self._session = session
        self._cache = cache
        self._roles = roles
        self._on_prompt = on_prompt
        self._prompted = False
        self._subscription: Subscription | None = None
        self._unsubscribe_session: Callable[[], None] | None = None
        self._loads: set[asyncio.Task[Any]] = set()

    @property
    def setup_required(self) -> bool:
        entry = self._cache.get(keys.CALLER_PROFILE)
        return (
            self._session.current_identity() is not None
            and entry is not None
            and entry.status is CacheStatus.SUCCESS
            and isinstance(entry.value, Absent)
        )

    async def start(self) -> None:
        if self._subscription is None:
            self._subscription = self._cache.subscribe(keys.CALLER_PROFILE, self._on_entry)
            self._unsubscribe_session = self._session.subscribe(self._on_identity)
        await self._load()

    async def _load(self) -> None:
        if self._session.current_identity() is not None:
            try:
                await self._roles.profile()
            except Exception as e:
                logger.debug(f"Profile read failed: {e}")
        self._check()

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None
        for task in self._loads:
            task.cancel()
        self._loads.clear()

    def _on_entry(self, entry: CacheEntry) -> None:
        self._check()

    def _on_identity(self, identity: Identity | None) -> None:
        self._prompted = False
        task = asyncio.get_running_loop().create_task(self._load())
        self._loads.add(task)
        task.add_done_callback(self._loads.discard)

    def _check(self) -> None:
        identity = self._session.current_identity()
        if identity is None or self._prompted or not self.setup_required:
            return
        self._prompted = True
        logger.info(f"Profile setup required for {identity}")
        self._on_prompt(identity)
