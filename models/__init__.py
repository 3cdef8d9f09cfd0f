# models/__init__.py
from models.base import Base
from models.staff import Staff
from models.listing import Listing
from models.job_event import JobEvent
from models.assignment import EditorAssignment, PhotographerAssignment
from models.time_entry import TimeEntry
from models.pay_period import PayPeriod
from models.processing_job import ProcessingJob
from models.media_asset import MediaAsset
from models.partner import Partner
from models.api_key import ApiCacheEntry, ApiKey
from models.job import Job
from models.event import Event

__all__ = [
    "Base",
    "Staff",
    "Listing",
    "JobEvent",
    "PhotographerAssignment",
    "EditorAssignment",
    "TimeEntry",
    "PayPeriod",
    "ProcessingJob",
    "MediaAsset",
    "Partner",
    "ApiKey",
    "ApiCacheEntry",
    "Job",
    "Event",
]
