"""
Helpers shared by the two template services: visibility defaulting and
activate/deactivate.
"""

from __future__ import annotations

from uuid import UUID

from finance_schedule.domain.types import TransactionVisibility
from finance_schedule.exceptions import AccountNotFoundError
from finance_schedule.logging_config import LogContext, get_logger
from finance_schedule.stores.base import AccountStore

logger = get_logger("services.lifecycle")


def resolve_visibility(
    accounts: AccountStore,
    account_id: UUID,
    visibility: TransactionVisibility | str | None,
) -> TransactionVisibility:
    """Explicit visibility wins; otherwise joint accounts are SHARED, personal PRIVATE.

    Raises:
        AccountNotFoundError: ``account_id`` does not exist.
    """
    account = accounts.find_by_id(account_id)
    if account is None:
        raise AccountNotFoundError(account_id)
    if visibility is not None:
        return TransactionVisibility(visibility)
    return account.default_visibility


class TemplateLifecycleMixin:
    """activate()/deactivate() for services that own a template store."""

    _templates = None

    def activate(self, template_id: UUID):
        return self._set_active(template_id, True)

    def deactivate(self, template_id: UUID):
        """Stop further generation; existing entries and history are kept."""
        return self._set_active(template_id, False)

    def _set_active(self, template_id: UUID, is_active: bool):
        template = self._templates.get(template_id)
        changed = template.activated() if is_active else template.deactivated()
        stored = self._templates.update_active_flag(template_id, changed.is_active)
        with LogContext.bind(couple_id=template.couple_id, template_id=template_id):
            logger.info(
                "template_activated" if is_active else "template_deactivated",
                extra={"template_type": type(template).__name__},
            )
        return stored
