"""
Category Flow

Category CRUD and the one-time seeding of the default set.
"""

from typing import Any, Optional

from budge.ledger.base import LedgerFlow
from budge.models.audit import AuditEventBuilder
from budge.models.icons import CategoryIcon
from budge.models.ledger import Category, CategoryType
from budge.services.storage import Collection, NotFoundError, StorageError


# (name, icon, color)
DEFAULT_EXPENSE_CATEGORIES: list[tuple[str, CategoryIcon, str]] = [
    ("Food & Dining", CategoryIcon.UTENSILS, "#ef4444"),
    ("Transportation", CategoryIcon.CAR, "#3b82f6"),
    ("Shopping", CategoryIcon.SHOPPING_BAG, "#8b5cf6"),
    ("Entertainment", CategoryIcon.FILM, "#ec4899"),
    ("Bills & Utilities", CategoryIcon.RECEIPT, "#f59e0b"),
    ("Healthcare", CategoryIcon.HEART, "#10b981"),
    ("Education", CategoryIcon.GRADUATION_CAP, "#6366f1"),
    ("Travel", CategoryIcon.PLANE, "#14b8a6"),
    ("Personal Care", CategoryIcon.SPARKLES, "#f43f5e"),
    ("Other", CategoryIcon.MORE_HORIZONTAL, "#6b7280"),
]

DEFAULT_INCOME_CATEGORIES: list[tuple[str, CategoryIcon, str]] = [
    ("Salary", CategoryIcon.BRIEFCASE, "#10b981"),
    ("Freelance", CategoryIcon.CODE, "#3b82f6"),
    ("Investment", CategoryIcon.TRENDING_UP, "#8b5cf6"),
    ("Business", CategoryIcon.STORE, "#f59e0b"),
    ("Gift", CategoryIcon.GIFT, "#ec4899"),
    ("Other", CategoryIcon.DOLLAR_SIGN, "#6b7280"),
]


def default_categories() -> list[Category]:
    """Fresh default category records, expense first."""
    categories = []
    for category_type, table in (
        (CategoryType.EXPENSE, DEFAULT_EXPENSE_CATEGORIES),
        (CategoryType.INCOME, DEFAULT_INCOME_CATEGORIES),
    ):
        for name, icon, color in table:
            categories.append(Category(
                name=name,
                type=category_type,
                icon=icon,
                color=color,
                is_default=True,
            ))
    return categories


class CategoryFlow(LedgerFlow):
    """Category CRUD and default seeding."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._snapshot: list[Category] = []

    async def initialize_defaults(self) -> int:
        """
        Seed the default categories if there are none yet.

        Returns the number of categories added (0 when already seeded).
        """
        with self._audit.storage_errors("seed categories"):
            if await self._store.list_all(Collection.CATEGORIES):
                return 0
            defaults = default_categories()
            for category in defaults:
                await self._store.add(Collection.CATEGORIES, category)
        self._audit.log(AuditEventBuilder.categories_seeded(len(defaults)))
        return len(defaults)

    async def create(self, data: dict[str, Any]) -> Category:
        category = self._validated(self._validator.category, data)
        with self._audit.storage_errors("create category"):
            await self._store.add(Collection.CATEGORIES, category)
        return category

    async def edit(self, category_id: str, updates: dict[str, Any]) -> Category:
        existing = await self.get(category_id)
        if existing is None:
            raise NotFoundError(f"Category not found: {category_id}")

        payload = {
            **existing.model_dump(),
            **updates,
            "id": existing.id,
            "created_at": existing.created_at,
        }
        category = self._validated(self._validator.category, payload)
        with self._audit.storage_errors("update category"):
            await self._store.update(Collection.CATEGORIES, category)
        return category

    async def remove(self, category_id: str) -> bool:
        """Delete a category. Transactions keep the dangling id."""
        with self._audit.storage_errors("delete category"):
            return await self._store.delete(Collection.CATEGORIES, category_id)

    async def get(self, category_id: str) -> Optional[Category]:
        with self._audit.storage_errors("load category"):
            return await self._store.get(Collection.CATEGORIES, category_id)

    async def list(self, category_type: Optional[CategoryType] = None) -> list[Category]:
        """All categories, or only those of one type."""
        try:
            if category_type is None:
                categories = await self._store.list_all(Collection.CATEGORIES)
            else:
                categories = await self._store.get_by_index(
                    Collection.CATEGORIES, "type", category_type
                )
        except StorageError as e:
            self._audit.log_storage_error("load categories", e)
            return [
                c for c in self._snapshot
                if category_type is None or c.type == category_type
            ]
        if category_type is None:
            self._snapshot = categories
        return list(categories)
