from alumni_api.models.user import User, UserRole
from alumni_api.models.category import EventCategory
from alumni_api.models.event import Event, EventStatus
from alumni_api.models.form import EventForm, EventFormField, FieldType
from alumni_api.models.registration import (
    EventRegistration,
    EventFormResponse,
    MealPreference,
    PaymentStatus,
    RegistrationStatus,
)
from alumni_api.models.guest import EventGuest, GuestStatus
from alumni_api.models.merchandise import EventMerchandise, MerchandiseOrder, OrderStatus
from alumni_api.models.section import EventSection, SectionType
from alumni_api.models.feedback import (
    EventFeedbackField,
    EventFeedbackForm,
    EventFeedbackResponse,
    FeedbackFieldType,
)
from alumni_api.models.activity_log import ActivityLog

__all__ = [
    "User", "UserRole",
    "EventCategory",
    "Event", "EventStatus",
    "EventForm", "EventFormField", "FieldType",
    "EventRegistration", "EventFormResponse", "MealPreference", "PaymentStatus", "RegistrationStatus",
    "EventGuest", "GuestStatus",
    "EventMerchandise", "MerchandiseOrder", "OrderStatus",
    "EventSection", "SectionType",
    "EventFeedbackForm", "EventFeedbackField", "EventFeedbackResponse", "FeedbackFieldType",
    "ActivityLog",
]
