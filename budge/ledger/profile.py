"""
Profile Flow

The profile is a singleton created at onboarding. Its balance is owned
by the balance ledger; everything else can be edited directly.
"""

from typing import Any, Optional

from budge.models.audit import AuditEventBuilder
from budge.models.ledger import PROFILE_ID, Profile, utcnow
from budge.ledger.base import LedgerFlow
from budge.services.storage import Collection, LedgerStoreInterface, StorageError


async def load_profile(store: LedgerStoreInterface) -> Optional[Profile]:
    """The stored profile, or None before onboarding."""
    profiles = await store.list_all(Collection.PROFILE)
    return profiles[0] if profiles else None


class ProfileFlow(LedgerFlow):
    """Onboarding and profile edits."""

    _snapshot: Optional[Profile] = None

    async def get_profile(self) -> Optional[Profile]:
        try:
            self._snapshot = await load_profile(self._store)
        except StorageError as e:
            self._audit.log_storage_error("load profile", e)
        return self._snapshot

    async def create_profile(self, data: dict[str, Any]) -> Profile:
        """
        Create the singleton profile.

        Raises:
            LedgerValidationError: If name, currency or balance are invalid
            DuplicateError: If onboarding already happened
        """
        payload = {**data, "id": PROFILE_ID}
        profile = self._validated(self._validator.profile, payload)
        with self._audit.storage_errors("create profile"):
            await self._store.add(Collection.PROFILE, profile)
        self._audit.log(AuditEventBuilder.profile_saved(profile.name, profile.currency))
        self._snapshot = profile
        return profile

    async def update_profile(self, updates: dict[str, Any]) -> Optional[Profile]:
        """
        Apply explicit edits to the profile.

        Returns None (and writes nothing) if there is no profile yet.
        """
        with self._audit.storage_errors("update profile"):
            existing = await load_profile(self._store)
            if existing is None:
                return None
            payload = {
                **existing.model_dump(),
                **updates,
                "id": existing.id,
                "created_at": existing.created_at,
                "updated_at": utcnow(),
            }
            profile = self._validated(self._validator.profile, payload)
            await self._store.put(Collection.PROFILE, profile)
        self._audit.log(AuditEventBuilder.profile_saved(profile.name, profile.currency))
        self._snapshot = profile
        return profile
