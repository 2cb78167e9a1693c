from storefront.models.account import Account, AccountStatus, Role, RoleAssignment
from storefront.models.otp import OtpChallenge, OtpPurpose
from storefront.models.store import Store

__all__ = [
    "Account",
    "AccountStatus",
    "OtpChallenge",
    "OtpPurpose",
    "Role",
    "RoleAssignment",
    "Store",
]
