from enum import Enum


class CustomFieldType(str, Enum):
    TEXT = "text"
    OPTION = "option"
    CHECKBOX = "checkbox"


class HistoryEntryType(str, Enum):
    PAYMENT_ADD = "payment_add"
    PAYMENT_UPDATE = "payment_update"
    PAYMENT_REMOVE = "payment_remove"


class PaymentOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"
    UNCHANGED_ABSENT = "unchanged_absent"


class PaymentStatus(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    CREDIT = "credit"
    DEBIT = "debit"
