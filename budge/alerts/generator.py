"""
Due-Soon Alert Generation

Per subscription, an alert moves through:

    no alert --(due date enters the window)--> active
    active   --(dismissed, permanent)--------> dismissed
    active / dismissed --(due date passes)---> purged

DESIGN DECISION: At most one alert per subscription at a time.
Deduplication keys on subscription_id across dismissed and
non-dismissed alerts alike. If a subscription is marked paid while a
dismissed alert for the old due date is still around, no fresh alert is
raised until the old one ages out.
"""

from datetime import date
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from budge.audit import AuditLogger
from budge.config import get_settings
from budge.models.audit import AuditEventBuilder
from budge.models.ledger import Alert, Subscription
from budge.services.storage import Collection, LedgerStoreInterface, StorageError


class AlertRefresh(BaseModel):
    """Outcome of one refresh pass."""

    created: list[Alert] = Field(default_factory=list)
    expired: list[Alert] = Field(default_factory=list)
    active: list[Alert] = Field(
        default_factory=list,
        description="Non-dismissed alerts, soonest first"
    )


def days_until(due: date, today: date) -> int:
    """Whole calendar days from `today` to `due` (negative when overdue)."""
    return (due - today).days


def sort_active(alerts: Iterable[Alert]) -> list[Alert]:
    """Non-dismissed alerts ordered by days_until_due ascending."""
    return sorted(
        (a for a in alerts if not a.dismissed),
        key=lambda a: a.days_until_due,
    )


def refresh_alerts(
    subscriptions: Iterable[Subscription],
    existing_alerts: Iterable[Alert],
    today: date,
    window_days: int = 3,
) -> AlertRefresh:
    """
    Work out which alerts to purge and which to create.

    Pure: nothing is read from or written to the store.

    1. Alerts whose due date is before `today` expire.
    2. Every subscription due within [0, window_days] days that has no
       surviving alert (dismissed or not) gets a new one.
    3. The active list is surviving + new alerts that are not dismissed.
    """
    expired: list[Alert] = []
    surviving: list[Alert] = []
    for alert in existing_alerts:
        if alert.due_date < today:
            expired.append(alert)
        else:
            surviving.append(alert)

    alerted = {a.subscription_id for a in surviving}
    created: list[Alert] = []
    for sub in subscriptions:
        remaining = days_until(sub.next_payment_date, today)
        if 0 <= remaining <= window_days and sub.id not in alerted:
            created.append(Alert(
                subscription_id=sub.id,
                subscription_name=sub.name,
                amount=sub.amount,
                due_date=sub.next_payment_date,
                days_until_due=remaining,
            ))
            alerted.add(sub.id)

    return AlertRefresh(
        created=created,
        expired=expired,
        active=sort_active([*surviving, *created]),
    )


class AlertService:
    """
    Keeps the stored alerts in line with the subscriptions.

    There are no timers. Callers refresh when they show alerts, so
    alerts are only as fresh as the last refresh.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        window_days: Optional[int] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._window_days = (
            window_days if window_days is not None
            else get_settings().alerts.window_days
        )
        self._snapshot: list[Alert] = []

    @property
    def window_days(self) -> int:
        return self._window_days

    async def refresh(self, today: Optional[date] = None) -> list[Alert]:
        """
        Purge expired alerts, raise new ones and return the active list.

        On a storage failure the last good active list is returned.
        """
        today = today or date.today()
        try:
            subscriptions = await self._store.list_all(Collection.SUBSCRIPTIONS)
            existing = await self._store.list_all(Collection.ALERTS)
            outcome = refresh_alerts(subscriptions, existing, today, self._window_days)

            for alert in outcome.expired:
                await self._store.delete(Collection.ALERTS, alert.id)
                self._audit.log(AuditEventBuilder.alert_expired(
                    alert.id, alert.due_date.isoformat()
                ))

            for alert in outcome.created:
                await self._store.add(Collection.ALERTS, alert)
                self._audit.log(AuditEventBuilder.alert_created(
                    alert.id, alert.subscription_id, alert.days_until_due
                ))
        except StorageError as e:
            self._audit.log_storage_error("refresh alerts", e)
            return list(self._snapshot)

        self._snapshot = outcome.active
        return list(outcome.active)

    async def get_active(self) -> list[Alert]:
        """Non-dismissed alerts, soonest first."""
        try:
            alerts = await self._store.get_by_index(Collection.ALERTS, "dismissed", False)
        except StorageError as e:
            self._audit.log_storage_error("load alerts", e)
            return list(self._snapshot)
        self._snapshot = sort_active(alerts)
        return list(self._snapshot)

    async def dismiss(self, alert_id: str) -> bool:
        """
        Dismiss an alert. Dismissal cannot be undone.

        Returns False if no such alert exists.
        """
        with self._audit.storage_errors("load alert"):
            alert = await self._store.get(Collection.ALERTS, alert_id)
        if alert is None:
            return False
        if not alert.dismissed:
            alert.dismissed = True
            try:
                await self._store.update(Collection.ALERTS, alert)
            except StorageError as e:
                self._audit.log_storage_error("dismiss alert", e)
                raise
            self._audit.log(AuditEventBuilder.alert_dismissed(alert_id))
        self._snapshot = [a for a in self._snapshot if a.id != alert_id]
        return True

    async def clear_old_alerts(self, today: Optional[date] = None) -> int:
        """Delete alerts whose due date has passed. Returns how many."""
        today = today or date.today()
        removed = 0
        with self._audit.storage_errors("clear old alerts"):
            for alert in await self._store.list_all(Collection.ALERTS):
                if alert.due_date < today:
                    await self._store.delete(Collection.ALERTS, alert.id)
                    self._audit.log(AuditEventBuilder.alert_expired(
                        alert.id, alert.due_date.isoformat()
                    ))
                    removed += 1
        return removed
