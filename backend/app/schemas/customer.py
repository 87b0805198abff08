"""Customer schemas."""
from pydantic import BaseModel

from app.schemas.ticket import TicketResponse


class CustomerResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    county: str
    created_at: str

    class Config:
        from_attributes = True


class CustomerProfileResponse(CustomerResponse):
    address: str
    stripe_customer_id: str | None


class CustomerStatsResponse(BaseModel):
    total_tickets: int
    completed_tickets: int
    failed_tickets: int
    total_spent: float
    wins: int

    class Config:
        from_attributes = True


class CustomerDetailResponse(BaseModel):
    customer: CustomerProfileResponse
    tickets: list[TicketResponse]
    stats: CustomerStatsResponse

    class Config:
        from_attributes = True
