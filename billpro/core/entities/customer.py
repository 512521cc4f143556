"""Customer entity (only id and name matter to invoicing)."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from billpro.core.entities.invoice import utcnow


class Customer(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = Field(min_length=1)
    phone: str | None = None
    email: str | None = None
    gst_number: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
