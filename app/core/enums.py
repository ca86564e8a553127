"""Core enums used across modules."""

from enum import StrEnum


class AdminRoleEnum(StrEnum):
    """Administrator roles."""

    SUPER_ADMIN = "SUPER_ADMIN"
    OPERATIONS_MANAGER = "OPERATIONS_MANAGER"
    FINANCE_MANAGER = "FINANCE_MANAGER"
    CUSTOMER_SERVICE = "CUSTOMER_SERVICE"


class ResourceEnum(StrEnum):
    """Resources guarded by the permission table."""

    BOOKINGS = "bookings"
    CUSTOMERS = "customers"
    PAYMENTS = "payments"
    FINANCIAL = "financial"
    PRICING = "pricing"
    SETTINGS = "settings"
    ADMIN_USERS = "admin_users"
    ANALYTICS = "analytics"
    AUDIT_LOGS = "audit_logs"


class ActionEnum(StrEnum):
    """Actions that can be granted on a resource."""

    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    EXPORT = "export"
    REFUND = "refund"


class AuditActionEnum(StrEnum):
    """Security-relevant events written to the audit log."""

    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGIN_MFA_REQUIRED = "LOGIN_MFA_REQUIRED"
    LOGIN_MFA_FAILED = "LOGIN_MFA_FAILED"
    LOGIN_BLOCKED_LOCKED = "LOGIN_BLOCKED_LOCKED"
    LOGIN_BLOCKED_DISABLED = "LOGIN_BLOCKED_DISABLED"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    LOGOUT = "LOGOUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    MFA_SETUP_INITIATED = "MFA_SETUP_INITIATED"
    MFA_ENABLED = "MFA_ENABLED"
    MFA_DISABLED = "MFA_DISABLED"
    MFA_BACKUP_CODE_USED = "MFA_BACKUP_CODE_USED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    ADMIN_USER_CREATED = "ADMIN_USER_CREATED"
    ADMIN_USER_UPDATED = "ADMIN_USER_UPDATED"
    ADMIN_USER_DEACTIVATED = "ADMIN_USER_DEACTIVATED"
    ADMIN_PASSWORD_RESET = "ADMIN_PASSWORD_RESET"
    ADMIN_USER_UNLOCKED = "ADMIN_USER_UNLOCKED"
    UNAUTHORIZED_ACCESS_ATTEMPT = "UNAUTHORIZED_ACCESS_ATTEMPT"
