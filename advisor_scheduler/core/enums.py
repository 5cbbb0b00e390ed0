from enum import Enum


class UserRole(str, Enum):
    STUDENT = "student"
    ADVISOR = "advisor"
    # Not a login role; used for batch jobs such as the expiry sweep
    SYSTEM = "system"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    FAILED = "failed"
    NO_RESPONSE = "no_response"
    PENDING_STUDENT_CONFIRMATION = "pending_student_confirmation"
    PENDING_ADVISOR_CONFIRMATION = "pending_advisor_confirmation"


class AppointmentEvent(str, Enum):
    CONFIRM = "confirm"
    REJECT = "reject"
    ACCEPT = "accept"
    DECLINE = "decline"
    EDIT = "edit"
    CONFIRM_CHANGES = "confirm-changes"
    COMPLETE = "complete"
    FAIL = "fail"
    CANCEL = "cancel"
    EXPIRE = "expire"


class NotificationType(str, Enum):
    APPOINTMENT_REQUEST = "appointment_request"
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    APPOINTMENT_REJECTED = "appointment_rejected"
    APPOINTMENT_ACCEPTED = "appointment_accepted"
    APPOINTMENT_DECLINED = "appointment_declined"
    APPOINTMENT_CHANGED = "appointment_changed"
    CHANGES_CONFIRMED = "changes_confirmed"
