"""Imports calendars and calendar events as JSON documents"""

import logging
from typing import List, Optional, Tuple

from oauth.providers import CALENDAR
from ..idempotent_executor import IdempotentImportExecutor
from ..models import CalendarContainerResource, CalendarEventModel, CalendarModel
from ..pipeline import ChildTask, ParentTask
from ..storage_client import StorageClient
from .base import Importer, first_line, item_key, parent_key, stable_digest

logger = logging.getLogger(__name__)

CALENDAR_FOLDER = "calendar"
EVENT_FOLDER = "calendar_event"


class CalendarImporter(Importer):
    resource_kind = CALENDAR

    def plan(
        self,
        job_id: str,
        client: StorageClient,
        executor: IdempotentImportExecutor,
        resource: CalendarContainerResource,
    ) -> Tuple[List[ParentTask], List[ChildTask]]:
        parents = [
            ParentTask(
                parent_key("calendar", calendar.id),
                calendar.name,
                lambda calendar=calendar: self._import_calendar(calendar, client),
            )
            for calendar in resource.calendars
        ]
        children = []
        for event in resource.events:
            event_id = event.id or stable_digest(event)
            children.append(
                ChildTask(
                    item_key("event", event.calendar_id, event_id),
                    event.title or event_id,
                    parent_key("calendar", event.calendar_id),
                    lambda calendar_path, event=event, event_id=event_id: self._import_event(
                        event, event_id, calendar_path, client
                    ),
                )
            )
        return parents, children

    def _import_calendar(self, calendar: CalendarModel, client: StorageClient) -> str:
        folder = client.ensure_top_level_folder(CALENDAR_FOLDER)
        title = f"{calendar.name}--{calendar.id}" if calendar.name else calendar.id
        full_path = client.json_path(folder, title)
        if client.file_exists(full_path):
            logger.debug(f"Calendar already exists {full_path}")
            return full_path
        return client.upload_json(folder, title, calendar.model_dump_json())

    def _import_event(
        self,
        event: CalendarEventModel,
        event_id: str,
        calendar_path: Optional[str],
        client: StorageClient,
    ) -> str:
        logger.debug(f"Import event {event_id} of calendar {calendar_path}")
        folder = client.ensure_top_level_folder(EVENT_FOLDER)
        title = f"{first_line(event.title) or 'untitled event'}--{event_id}"
        full_path = client.json_path(folder, title)
        if client.file_exists(full_path):
            logger.debug(f"Event already exists {full_path}")
            return full_path
        return client.upload_json(folder, title, event.model_dump_json())
