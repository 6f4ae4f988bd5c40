from .auth import User, SessionToken
from .tenancy import Workspace, WorkspaceMember, MEMBER_ROLES
from .inventory import Location, Box, QRCode, QR_STATUS_GENERATED, QR_STATUS_ASSIGNED, QR_STATUSES

__all__ = [
    'User', 'SessionToken',
    'Workspace', 'WorkspaceMember', 'MEMBER_ROLES',
    'Location', 'Box', 'QRCode',
    'QR_STATUS_GENERATED', 'QR_STATUS_ASSIGNED', 'QR_STATUSES',
]
