"""
Security Core - company roles and the voucher permissions they grant.
"""

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    ACCOUNTING_MANAGER = "ACC_MGR"
    ACCOUNTANT = "ACCOUNTANT"
    CUSTODIAN = "CUSTODIAN"
    VIEWER = "VIEWER"
    AUDITOR = "AUDITOR"


class Permission(str, Enum):
    VOUCHER_VIEW = "voucher.view"
    VOUCHER_CREATE = "voucher.create"
    VOUCHER_UPDATE = "voucher.update"
    VOUCHER_DELETE = "voucher.delete"
    VOUCHER_SUBMIT = "voucher.submit"
    VOUCHER_APPROVE = "voucher.approve"
    VOUCHER_REJECT = "voucher.reject"
    VOUCHER_CONFIRM_CUSTODY = "voucher.confirm_custody"
    VOUCHER_POST = "voucher.post"
    VOUCHER_CANCEL = "voucher.cancel"
    VOUCHER_CORRECT = "voucher.correct"
    EXCHANGE_RATE_VIEW = "exchange_rate.view"
    EXCHANGE_RATE_MANAGE = "exchange_rate.manage"


ROLE_PERMISSIONS: dict[UserRole, list[Permission]] = {
    UserRole.ADMIN: list(Permission),
    UserRole.ACCOUNTING_MANAGER: [
        Permission.VOUCHER_VIEW,
        Permission.VOUCHER_CREATE,
        Permission.VOUCHER_UPDATE,
        Permission.VOUCHER_DELETE,
        Permission.VOUCHER_SUBMIT,
        Permission.VOUCHER_APPROVE,
        Permission.VOUCHER_REJECT,
        Permission.VOUCHER_POST,
        Permission.VOUCHER_CANCEL,
        Permission.VOUCHER_CORRECT,
        Permission.EXCHANGE_RATE_VIEW,
        Permission.EXCHANGE_RATE_MANAGE,
    ],
    UserRole.ACCOUNTANT: [
        Permission.VOUCHER_VIEW,
        Permission.VOUCHER_CREATE,
        Permission.VOUCHER_UPDATE,
        Permission.VOUCHER_DELETE,
        Permission.VOUCHER_SUBMIT,
        Permission.VOUCHER_POST,
        Permission.VOUCHER_CANCEL,
        Permission.EXCHANGE_RATE_VIEW,
        Permission.EXCHANGE_RATE_MANAGE,
    ],
    UserRole.CUSTODIAN: [
        Permission.VOUCHER_VIEW,
        Permission.VOUCHER_CONFIRM_CUSTODY,
    ],
    UserRole.VIEWER: [Permission.VOUCHER_VIEW, Permission.EXCHANGE_RATE_VIEW],
    UserRole.AUDITOR: [Permission.VOUCHER_VIEW, Permission.EXCHANGE_RATE_VIEW],
}


class RBACService:
    def has_permission(self, role: UserRole, permission: Permission | str) -> bool:
        return permission in ROLE_PERMISSIONS.get(role, [])

    def get_user_permissions(self, role: UserRole) -> list[Permission]:
        return ROLE_PERMISSIONS.get(role, [])
