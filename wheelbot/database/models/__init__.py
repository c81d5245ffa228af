from .user import User
from .role import Role, UserRoleAssignment
from .spin import SpinResult, WheelSpin
from .invitation import InvitationCode, InvitationGrant
from .notification import Notification, NotificationType

__all__ = [
    "User",
    "Role",
    "UserRoleAssignment",
    "SpinResult",
    "WheelSpin",
    "InvitationGrant",
    "InvitationCode",
    "Notification",
    "NotificationType",
]
