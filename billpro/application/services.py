"""
Service factory functions for dependency injection.

This module wires infrastructure implementations to core services. Use
cases and API dependencies should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from billpro.core.services import InvoiceLifecycleManager

if TYPE_CHECKING:
    from billpro.config.settings import BillingSettings
    from billpro.core.interfaces import UnitOfWorkFactory


# Singleton service instances
_invoice_lifecycle_manager: InvoiceLifecycleManager | None = None


def get_invoice_lifecycle_manager(
    uow_factory: "UnitOfWorkFactory | None" = None,
    billing: "BillingSettings | None" = None,
) -> InvoiceLifecycleManager:
    """
    Get or create the InvoiceLifecycleManager.

    The instance is shared so its numbering cache survives across requests.

    Args:
        uow_factory: Optional unit-of-work factory override
        billing: Optional billing settings override
    """
    global _invoice_lifecycle_manager

    if _invoice_lifecycle_manager is None or uow_factory is not None:
        if uow_factory is None:
            from billpro.infrastructure.storage.sqlite import get_unit_of_work

            uow_factory = get_unit_of_work

        _invoice_lifecycle_manager = InvoiceLifecycleManager(
            uow_factory=uow_factory,
            billing=billing,
        )

    return _invoice_lifecycle_manager


def reset_services() -> None:
    """Drop cached service instances (for testing)."""
    global _invoice_lifecycle_manager
    _invoice_lifecycle_manager = None
