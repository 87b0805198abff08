"""Typed records decoded from hosted backend rows."""
from app.models.campaign import Campaign, CampaignMode, Delivery
from app.models.customer import Customer, CustomerRef
from app.models.notification import Notification
from app.models.payment import Payment
from app.models.raffle import Raffle, RaffleStatus, Ticket
from app.models.support import SupportRequest

__all__ = [
    "Campaign",
    "CampaignMode",
    "Delivery",
    "Customer",
    "CustomerRef",
    "Notification",
    "Payment",
    "Raffle",
    "RaffleStatus",
    "Ticket",
    "SupportRequest",
]
