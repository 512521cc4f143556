"""Infrastructure layer implementations."""

from billpro.infrastructure import storage

__all__ = ["storage"]
