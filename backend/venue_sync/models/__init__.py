from .enums import InvitationStatus, RequestStatus, SyncMethod, SystemRole
from .user import User
from .venue import Venue
from .restaurant import Restaurant
from .venue_request import VenueRequest
from .venue_invitation import VenueInvitation
from .activity import RestaurantActivity, VenueActivity

__all__ = [
    "SystemRole",
    "RequestStatus",
    "InvitationStatus",
    "SyncMethod",
    "User",
    "Venue",
    "Restaurant",
    "VenueRequest",
    "VenueInvitation",
    "VenueActivity",
    "RestaurantActivity",
]
