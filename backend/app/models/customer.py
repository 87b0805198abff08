"""Customer model."""
from dataclasses import dataclass


@dataclass
class Customer:
    """Registered app customer."""

    __tablename__ = "customers"
    columns = "id,name,email,phone,county,created_at"
    detail_columns = columns + ",address,stripe_customer_id"

    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    county: str = ""
    created_at: str = ""
    address: str = ""
    stripe_customer_id: str | None = None


@dataclass
class CustomerRef:
    """Minimal display record used when labelling deliveries."""

    id: str
    name: str = ""
    email: str = ""
