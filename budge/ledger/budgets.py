"""Budget CRUD."""

from typing import Any, Optional

from budge.ledger.base import LedgerFlow
from budge.models.ledger import Budget, BudgetPeriod, utcnow
from budge.services.storage import Collection, NotFoundError, StorageError


class BudgetFlow(LedgerFlow):
    """Per-category spending limits."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._snapshot: list[Budget] = []

    async def _category_name(self, category_id: str) -> str:
        category = await self._store.get(Collection.CATEGORIES, category_id)
        return category.name if category is not None else ""

    async def create(self, data: dict[str, Any]) -> Budget:
        """
        Create a budget.

        A blank category_name is filled in from the category record.
        """
        budget = self._validated(self._validator.budget, data)
        with self._audit.storage_errors("create budget"):
            if not budget.category_name:
                budget.category_name = await self._category_name(budget.category_id)
            await self._store.add(Collection.BUDGETS, budget)
        return budget

    async def edit(self, budget_id: str, updates: dict[str, Any]) -> Budget:
        with self._audit.storage_errors("load budget"):
            existing = await self._store.get(Collection.BUDGETS, budget_id)
        if existing is None:
            raise NotFoundError(f"Budget not found: {budget_id}")

        payload = {
            **existing.model_dump(),
            **updates,
            "id": existing.id,
            "created_at": existing.created_at,
            "updated_at": utcnow(),
        }
        if "category_id" in updates and "category_name" not in updates:
            payload["category_name"] = ""
        budget = self._validated(self._validator.budget, payload)
        with self._audit.storage_errors("update budget"):
            if not budget.category_name:
                budget.category_name = await self._category_name(budget.category_id)
            await self._store.update(Collection.BUDGETS, budget)
        return budget

    async def remove(self, budget_id: str) -> bool:
        with self._audit.storage_errors("delete budget"):
            return await self._store.delete(Collection.BUDGETS, budget_id)

    async def get_budget_for_category(
        self,
        category_id: str,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
    ) -> Optional[Budget]:
        """The first budget for a category and period, if any."""
        with self._audit.storage_errors("load budget"):
            budgets = await self._store.get_by_index(
                Collection.BUDGETS, "category_id", category_id
            )
        for budget in budgets:
            if budget.period == period:
                return budget
        return None

    async def list(self) -> list[Budget]:
        try:
            self._snapshot = await self._store.list_all(Collection.BUDGETS)
        except StorageError as e:
            self._audit.log_storage_error("load budgets", e)
        return list(self._snapshot)
