"""
Custom registration form per event.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from alumni_api.core.exceptions import NotFoundError
from alumni_api.core.logging import get_logger
from alumni_api.models.form import EventForm, EventFormField
from alumni_api.schemas.form import EventFormIn
from alumni_api.services.event_service import get_event

logger = get_logger(__name__)


async def find_form(db: AsyncSession, event_id: int) -> Optional[EventForm]:
    result = await db.execute(
        select(EventForm)
        .where(EventForm.event_id == event_id)
        .options(selectinload(EventForm.fields))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_form(db: AsyncSession, event_id: int) -> EventForm:
    await get_event(db, event_id)
    form = await find_form(db, event_id)
    if form is None or not form.is_active:
        raise NotFoundError("Registration form not found")
    return form


async def upsert_form(db: AsyncSession, event_id: int, form_data: EventFormIn) -> EventForm:
    """
    Create or replace the event's form. Fields are ordered by their position
    in the request. A field whose name already exists is updated in place so its
    id, and the answers members gave to it, survive; fields left out are removed.
    """
    event = await get_event(db, event_id)
    form = await find_form(db, event_id)
    if form is None:
        form = EventForm(event_id=event.id, fields=[])
        db.add(form)

    form.title = form_data.title
    form.description = form_data.description
    form.is_active = True
    existing = {field.field_name: field for field in form.fields}
    fields = []
    for index, field_in in enumerate(form_data.fields):
        field = existing.get(field_in.field_name) or EventFormField(field_name=field_in.field_name)
        field.field_label = field_in.field_label
        field.field_type = field_in.field_type.value
        field.options = field_in.options
        field.is_required = field_in.is_required
        field.order_index = index
        fields.append(field)
    form.fields = fields
    event.has_custom_form = True
    await db.flush()

    logger.info("event_form_saved", event_id=event.id, form_id=form.id, fields=len(form.fields))
    return form
