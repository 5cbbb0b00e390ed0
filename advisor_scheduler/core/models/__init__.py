from advisor_scheduler.auth.models import User
from advisor_scheduler.core.models.project import Project, ProjectStudent
from advisor_scheduler.core.models.appointment import Appointment
from advisor_scheduler.core.models.appointment_audit_log import AppointmentAuditLog
from advisor_scheduler.core.models.comment import Comment
from advisor_scheduler.core.models.notification import Notification
from advisor_scheduler.core.models.project_archive import ProjectArchive

__all__ = [
    "User",
    "Project",
    "ProjectStudent",
    "Appointment",
    "AppointmentAuditLog",
    "Comment",
    "Notification",
    "ProjectArchive",
]
