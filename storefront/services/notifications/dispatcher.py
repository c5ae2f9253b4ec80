"""Notification delivery.

Turns payloads plus an audience into one persisted notification row per
recipient. Delivery is best-effort: all writes for a call are issued
concurrently, every outcome is awaited, failures are counted and logged and
never raised, and nothing is retried or rolled back. A failed notification
must not fail the order or payment that caused it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

from storefront.core.rbac.directory import RoleDirectory
from storefront.db.store import DataStore

from .payloads import NotificationPayload, NotificationRecord

logger = logging.getLogger(__name__)

NOTIFICATIONS_TABLE = "notifications"


@dataclass
class DeliveryReport:
    """Outcome of one dispatch call."""
    attempted: int = 0
    delivered: int = 0
    failed: int = 0
    records: List[NotificationRecord] = field(default_factory=list)
    by_role: Dict[str, Tuple[int, int]] = field(default_factory=dict)  # role -> (delivered, failed)

    @property
    def ok(self) -> bool:
        return self.failed == 0


class NotificationDispatcher:
    """
    Delivers notifications to roles or individual users.

    Args:
        store: Data store holding the notifications table
        directory: Role directory used to resolve role members
    """

    def __init__(self, store: DataStore, directory: RoleDirectory):
        self.store = store
        self.directory = directory

    async def deliver_to_role(self, role_name: str, payload: NotificationPayload) -> DeliveryReport:
        """Send ``payload`` to every current member of ``role_name``."""
        try:
            members = await self.directory.members_of(role_name)
        except Exception:
            logger.exception("Error resolving members of role %r", role_name)
            return DeliveryReport()

        if not members:
            logger.warning("No users found for role: %s", role_name)
            return DeliveryReport()

        return await self._deliver([(role_name, payload, user_id) for user_id in sorted(members)])

    async def deliver_to_roles(self, role_payloads: Mapping[str, NotificationPayload]) -> DeliveryReport:
        """
        Send a tailored payload to each of several roles.

        All roles are resolved with one membership query. A user holding two
        of the roles receives both payloads.
        """
        if not role_payloads:
            return DeliveryReport()

        try:
            members_by_role = await self.directory.members_of_many(role_payloads.keys())
        except Exception:
            logger.exception("Error resolving members of roles %s", ", ".join(role_payloads))
            return DeliveryReport()

        targets = []
        for role_name, payload in role_payloads.items():
            members = members_by_role.get(role_name, set())
            if not members:
                logger.warning("No users found for role: %s", role_name)
                continue
            targets.extend((role_name, payload, user_id) for user_id in sorted(members))

        if not targets:
            return DeliveryReport()
        return await self._deliver(targets)

    async def deliver_to_user(self, user_id: str, payload: NotificationPayload) -> DeliveryReport:
        """Send ``payload`` to one known user without consulting the directory."""
        return await self._deliver([(None, payload, user_id)])

    async def _deliver(self, targets: List[Tuple]) -> DeliveryReport:
        results = await asyncio.gather(
            *[self.store.insert(NOTIFICATIONS_TABLE, payload.to_row(user_id)) for _, payload, user_id in targets],
            return_exceptions=True,
        )

        report = DeliveryReport(attempted=len(targets))
        tally: Dict[str, List[int]] = {}
        for (role_name, payload, user_id), result in zip(targets, results):
            counts = tally.setdefault(role_name, [0, 0]) if role_name else [0, 0]
            if isinstance(result, BaseException):
                report.failed += 1
                counts[1] += 1
                logger.debug("Delivery to %s failed: %s", user_id, result)
            else:
                report.delivered += 1
                counts[0] += 1
                report.records.append(NotificationRecord.from_row(result, payload))

        report.by_role = {role: (ok, bad) for role, (ok, bad) in tally.items()}

        for role_name, (_, failed) in report.by_role.items():
            if failed:
                total = sum(report.by_role[role_name])
                logger.error("%d of %d deliveries failed for role %s", failed, total, role_name)
        if report.failed and not report.by_role:
            logger.error("%d of %d direct deliveries failed", report.failed, report.attempted)
        elif report.failed and len(report.by_role) > 1:
            logger.error("Failed to send %d/%d notifications", report.failed, report.attempted)

        return report
