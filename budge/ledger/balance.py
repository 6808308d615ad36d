"""
Balance Ledger

Keeps Profile.current_balance equal to the onboarding balance plus all
income minus all expenses and subscription payments.

Every adjustment is a separate profile write. An edit is two writes:
the old transaction's effect is reversed first, then the new one is
applied. There is no transaction spanning the two, so a failure between
them leaves the balance with only the reversal applied. That failure is
logged as a partial failure and re-raised.
"""

from decimal import Decimal
from typing import Optional

from budge.audit import AuditLogger
from budge.ledger.profile import load_profile
from budge.models.audit import AuditEventBuilder
from budge.models.ledger import Profile, Transaction, TransactionType, utcnow
from budge.services.storage import Collection, LedgerStoreInterface, StorageError


def signed_effect(transaction: Transaction) -> Decimal:
    """+amount for income, -amount for expenses and subscription payments."""
    if transaction.type == TransactionType.INCOME:
        return transaction.amount
    return -transaction.amount


class BalanceLedger:
    """Applies transaction effects to the profile balance."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()

    signed_effect = staticmethod(signed_effect)

    async def _apply(self, delta: Decimal, reason: str) -> Optional[Profile]:
        profile = await load_profile(self._store)
        if profile is None:
            self._audit.log(AuditEventBuilder.balance_skipped(str(delta), reason))
            return None

        profile.current_balance += delta
        profile.updated_at = utcnow()
        with self._audit.storage_errors(f"balance {reason}"):
            await self._store.put(Collection.PROFILE, profile)
        self._audit.log(AuditEventBuilder.balance_adjusted(
            str(delta), str(profile.current_balance), reason
        ))
        return profile

    async def on_create(self, transaction: Transaction) -> Optional[Profile]:
        return await self._apply(signed_effect(transaction), "create")

    async def on_update(self, old: Transaction, new: Transaction) -> Optional[Profile]:
        """Reverse `old`, then apply `new`, in that order."""
        await self._apply(-signed_effect(old), "edit: reverse old")
        try:
            return await self._apply(signed_effect(new), "edit: apply new")
        except StorageError as e:
            self._audit.log_partial_failure(
                operation="edit transaction balance",
                completed_step="reverse old",
                failed_step="apply new",
                error=e,
                entity_id=new.id,
            )
            raise

    async def on_delete(self, transaction: Transaction) -> Optional[Profile]:
        return await self._apply(-signed_effect(transaction), "delete")
