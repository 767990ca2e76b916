"""
Admin dashboard schemas.
"""

from datetime import datetime

from alumni_api.schemas.common import CamelModel


class DashboardStats(CamelModel):
    total_events: int
    upcoming_events: int
    draft_events: int
    recent_registrations: int
    total_revenue: float
    generated_at: datetime
