from enum import Enum


class AccountRole(str, Enum):
    LANDLORD = "landlord"
    TENANT = "tenant"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class Decision(str, Enum):
    APPROVED = "approved"
    DENIED = "denied"


class BlindIndexKind(str, Enum):
    EMAIL = "email"
    FULL_NAME = "full_name"
    DATE_OF_BIRTH = "date_of_birth"
    PASSPORT_NUMBER = "passport_number"


class YesNo(str, Enum):
    YES = "yes"
    NO = "no"


class Capability(str, Enum):
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_APPLICATIONS = "view_applications"
    DECIDE_APPLICATIONS = "decide_applications"
    VIEW_TENANTS = "view_tenants"
    MESSAGE_TENANTS = "message_tenants"
    VIEW_ACCOUNT = "view_account"
    UPDATE_PASSWORD = "update_password"
    MESSAGE_LANDLORD = "message_landlord"
    LOGOUT = "logout"
