from sharecycle.models.donation import Donation
from sharecycle.models.notification import Notification
from sharecycle.models.request import DonationRequest
from sharecycle.models.user import User

__all__ = [
    "Donation",
    "DonationRequest",
    "Notification",
    "User",
]
