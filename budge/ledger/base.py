"""Shared plumbing for the ledger flows."""

from typing import Any, Callable, Optional, TypeVar

from budge.audit import AuditLogger
from budge.services.storage import LedgerStoreInterface
from budge.validation import LedgerValidationError, LedgerValidator


T = TypeVar("T")


class LedgerFlow:
    """
    Base for the per-entity flows.

    Holds the injected store, validator and audit logger. Flows never
    create their own store; one store is shared by all of them.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or LedgerValidator()
        self._audit = audit_logger or AuditLogger()

    @property
    def store(self) -> LedgerStoreInterface:
        return self._store

    def _validated(self, build: Callable[..., T], payload: dict[str, Any], **kwargs) -> T:
        """Run a validator method, logging the issues if it rejects the payload."""
        try:
            return build(payload, **kwargs)
        except LedgerValidationError as e:
            self._audit.log_validation_failed(
                e.result.entity_type,
                [issue.model_dump() for issue in e.result.issues],
            )
            raise
