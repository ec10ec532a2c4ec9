import enum

class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class ResolutionState(str, enum.Enum):
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    FAILED = "failed"

class RecurringMatchMode(str, enum.Enum):
    EXACT = "exact"
    CONTAINS = "contains"

class BookingMode(str, enum.Enum):
    CLIENT = "client"
    MASTER = "master"
