"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from alumni_api.api.routes import (
    admin,
    auth,
    cart,
    categories,
    events,
    feedback,
    forms,
    guests,
    merchandise,
    registrations,
    sections,
)

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
# Registered ahead of /events/{event_id} so "categories" is not parsed as an id
api_router.include_router(categories.router)
api_router.include_router(events.router)
api_router.include_router(sections.router)
api_router.include_router(forms.router)
api_router.include_router(registrations.router)
api_router.include_router(guests.router)
api_router.include_router(merchandise.router)
api_router.include_router(cart.router)
api_router.include_router(feedback.router)
api_router.include_router(admin.router)
