"""Resource importers, one per data type"""

from .base import Importer
from .photos import PhotosImporter
from .videos import VideosImporter
from .calendar import CalendarImporter
from .tasks import TasksImporter
from .orders import OrdersImporter

__all__ = [
    "Importer",
    "PhotosImporter",
    "VideosImporter",
    "CalendarImporter",
    "TasksImporter",
    "OrdersImporter",
]
