"""Abstract interface for customer lookup."""

from abc import ABC, abstractmethod

from billpro.core.entities.customer import Customer


class ICustomerStore(ABC):
    """Interface for customer persistence."""

    @abstractmethod
    async def create(self, customer: Customer) -> Customer:
        """Create a new customer."""
        pass

    @abstractmethod
    async def get(self, customer_id: str) -> Customer | None:
        """Get customer by ID."""
        pass

    @abstractmethod
    async def list_customers(self, limit: int = 100, offset: int = 0) -> list[Customer]:
        """List customers with pagination."""
        pass
