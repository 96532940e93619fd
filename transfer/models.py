"""
Pydantic models for the resource containers handed to importers.
"""
import datetime
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, field_validator

from oauth.providers import CALENDAR, ORDER, PHOTOS, TASKS, VIDEOS


class PhotoAlbum(BaseModel):
    """Album (becomes a folder at the destination)"""
    id: str
    name: str
    description: Optional[str] = None


class PhotoModel(BaseModel):
    """Single photo; content is fetched from the URL or the job blob store"""
    title: str
    data_id: str
    fetchable_url: Optional[str] = None
    description: Optional[str] = None
    media_type: str = "image/jpeg"
    album_id: Optional[str] = None
    in_temp_store: bool = False
    uploaded_time: Optional[datetime.datetime] = None


class PhotosContainerResource(BaseModel):
    albums: List[PhotoAlbum] = []
    photos: List[PhotoModel] = []


class VideoAlbum(BaseModel):
    id: str
    name: str
    description: Optional[str] = None


class VideoObject(BaseModel):
    name: str
    data_id: str
    content_url: str
    description: Optional[str] = None
    encoding_format: str = "video/mp4"
    album_id: Optional[str] = None


class VideosContainerResource(BaseModel):
    albums: List[VideoAlbum] = []
    videos: List[VideoObject] = []


class CalendarModel(BaseModel):
    id: str
    name: str
    description: Optional[str] = None


class CalendarEventModel(BaseModel):
    calendar_id: str
    title: Optional[str] = None
    id: Optional[str] = None  # Provider-stable id, when the source has one
    notes: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[datetime.datetime] = None
    end_time: Optional[datetime.datetime] = None
    attendees: List[str] = []


class CalendarContainerResource(BaseModel):
    calendars: List[CalendarModel] = []
    events: List[CalendarEventModel] = []


class TaskListModel(BaseModel):
    id: str
    name: str


class TaskModel(BaseModel):
    task_list_id: str
    text: Optional[str] = None
    id: Optional[str] = None
    notes: Optional[str] = None
    completed_time: Optional[datetime.datetime] = None
    due_time: Optional[datetime.datetime] = None


class TaskContainerResource(BaseModel):
    lists: List[TaskListModel] = []
    tasks: List[TaskModel] = []


class OrderModel(BaseModel):
    serial: str
    seller_name: Optional[str] = None
    buyer_name: Optional[str] = None
    deal_time: Optional[datetime.datetime] = None
    item: Optional[str] = None
    description: Optional[str] = None
    turnover: Optional[float] = None

    @field_validator("serial")
    @classmethod
    def serial_must_be_set(cls, value: str) -> str:
        if not value:
            raise ValueError("serial must be set")
        return value


class OrderContainerResource(BaseModel):
    orders: List[OrderModel] = []


CONTAINER_TYPES: Dict[str, Type[BaseModel]] = {
    PHOTOS: PhotosContainerResource,
    VIDEOS: VideosContainerResource,
    CALENDAR: CalendarContainerResource,
    TASKS: TaskContainerResource,
    ORDER: OrderContainerResource,
}


def parse_container(data_type: str, payload: Dict[str, Any]) -> BaseModel:
    """Validate a JSON document into the container model of data_type

    Raises:
        ValueError: For an unknown data type
        pydantic.ValidationError: If the document does not match the model
    """
    try:
        model = CONTAINER_TYPES[data_type]
    except KeyError:
        raise ValueError(f"Unsupported data type: {data_type}") from None
    return model.model_validate(payload)
