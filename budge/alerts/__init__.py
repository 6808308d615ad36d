"""Due-soon subscription alerts."""

from budge.alerts.generator import (
    AlertRefresh,
    AlertService,
    days_until,
    refresh_alerts,
    sort_active,
)

__all__ = [
    "AlertRefresh",
    "AlertService",
    "days_until",
    "refresh_alerts",
    "sort_active",
]
