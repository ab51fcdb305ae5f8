import enum


class SystemRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    NONE = "NONE"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    CANCELLED = "cancelled"


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class SyncMethod(str, enum.Enum):
    RESTAURANT_REQUEST = "restaurant_request"
    VENUE_INVITATION = "venue_invitation"
    MANUAL_SYNC = "manual_sync"


ASSOCIATION_ACTIVE = "active"

# venue.status values that keep a venue visible to discovery; absent status is visible too
JOINABLE_VENUE_STATUSES = ("active", "open")
