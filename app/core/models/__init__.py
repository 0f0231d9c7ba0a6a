from app.core.models.student import Student
from app.core.models.collection import Collection
from app.core.models.payment import Payment
from app.core.models.value_set import ValueSet
from app.core.models.history_entry import HistoryEntry

__all__ = [
    "Student",
    "Collection",
    "Payment",
    "ValueSet",
    "HistoryEntry",
]
