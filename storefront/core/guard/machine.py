"""Access guard state machine.

Wraps ``can_access`` with session loading state and role confinement and
turns the result into a navigation decision.
"""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterable, Optional

from storefront.core.rbac.checker import can_access
from storefront.core.rbac.permissions import PermissionTable

from .states import (
    GuardDecision,
    GuardState,
    RoleConfinement,
    RouteRequirement,
    ROUTE_GUARDS,
    SessionSnapshot,
    default_confinements,
    find_route,
    normalize_path,
)

logger = logging.getLogger(__name__)

UNKNOWN_DESTINATION = "This page is not available"


class AccessGuard:
    """
    Guard for protected routes and actions.

    Holds only configuration. Each ``evaluate`` call reads the roles from the
    session it is given, so a role change takes effect on the next check.

    Decision order:
    - Loading session: PENDING, nothing else is consulted
    - The destination is normalized once and used for every later step
    - Role confinement: a confined user outside the target is redirected
      before any permission check
    - Route lookup: unknown destinations are denied
    - Permission check via ``can_access``
    """

    def __init__(
        self,
        routes: Optional[Dict[str, RouteRequirement]] = None,
        confinements: Optional[Iterable[RoleConfinement]] = None,
        *,
        login_path: str = "/auth/login",
        table: Optional[PermissionTable] = None,
        history_size: int = 100,
    ):
        self.routes = dict(ROUTE_GUARDS if routes is None else routes)
        self.confinements = tuple(default_confinements() if confinements is None else confinements)
        self.login_path = login_path
        self.table = table
        self._history: Deque[Dict[str, Any]] = deque(maxlen=history_size)

    @staticmethod
    def state_of(session: Optional[SessionSnapshot]) -> GuardState:
        if session is None or session.loading:
            return GuardState.LOADING
        return GuardState.RESOLVED

    def evaluate(self, destination: str, session: Optional[SessionSnapshot]) -> GuardDecision:
        """
        Decide what happens when ``session`` tries to reach ``destination``.

        Args:
            destination: Path or action key being entered
            session: Current session, or None while it is still loading

        Returns:
            GuardDecision (PENDING while loading, otherwise terminal)
        """
        state = self.state_of(session)
        if state is GuardState.LOADING:
            decision = GuardDecision.pending()
        else:
            decision = self._resolve(destination, session)

        self._record(destination, session, state, decision)
        return decision

    def _resolve(self, destination: str, session: SessionSnapshot) -> GuardDecision:
        roles = frozenset(session.roles)
        path = normalize_path(destination)

        confinement = self._confinement_for(roles)
        if confinement and not confinement.permits(path):
            logger.warning(
                "Confined role %s redirected from %s to %s",
                confinement.role, destination, confinement.target,
            )
            return GuardDecision.redirect(confinement.target)

        requirement = find_route(path, self.routes)
        if requirement is None:
            logger.warning("No guard configured for %s; denying", destination)
            return GuardDecision.denied(UNKNOWN_DESTINATION)

        check = can_access(roles, requirement, session.is_authenticated, self.table)
        if check.allowed:
            return GuardDecision.proceed()

        if not session.is_authenticated and requirement.requires_auth:
            return GuardDecision.redirect(self.login_path)

        if confinement:
            return GuardDecision.redirect(confinement.target)

        return GuardDecision.denied(check.reason)

    def _confinement_for(self, roles: Iterable[str]) -> Optional[RoleConfinement]:
        for confinement in self.confinements:
            if confinement.applies_to(roles):
                return confinement
        return None

    def _record(
        self,
        destination: str,
        session: Optional[SessionSnapshot],
        state: GuardState,
        decision: GuardDecision,
    ) -> None:
        record = {
            "destination": destination,
            "user_id": session.user_id if session else None,
            "roles": sorted(session.roles) if session else [],
            "state": state.value,
            "outcome": decision.outcome.value,
            "target": decision.target,
            "reason": decision.reason,
            "timestamp": datetime.now(timezone.utc),
        }
        self._history.append(record)
        logger.debug("Guard %s -> %s", destination, decision.outcome.value)

    def get_history(self) -> list[Dict[str, Any]]:
        """Recent decisions, oldest first."""
        return list(self._history)
