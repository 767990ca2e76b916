from alumni_api.schemas.common import ApiResponse, ErrorResponse, Pagination
from alumni_api.schemas.user import UserCreate, UserResponse, UserLogin, Token
from alumni_api.schemas.event import (
    EventCreate,
    EventUpdate,
    EventStatusUpdate,
    EventResponse,
    EventListResponse,
    RegistrationStatusResponse,
)
from alumni_api.schemas.registration import (
    RegistrationCreate,
    RegistrationUpdate,
    RegistrationResponse,
    RegistrationResult,
    MyRegistrationResponse,
)

__all__ = [
    "ApiResponse", "ErrorResponse", "Pagination",
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventUpdate", "EventStatusUpdate", "EventResponse", "EventListResponse",
    "RegistrationStatusResponse",
    "RegistrationCreate", "RegistrationUpdate", "RegistrationResponse", "RegistrationResult",
    "MyRegistrationResponse",
]
