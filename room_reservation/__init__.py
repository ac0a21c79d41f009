from .booking import SLOT_MINUTES, TimeInterval, has_time_overlap, parse_slot_time, parse_time, time_options
from .calendar_view import DayBucket, Direction, Granularity, advance, pad_to_weeks, period_bounds, project, weeks
from .config import Settings, build_store, configure_logging, load_settings
from .models import MeetingRoom, Reservation, User
from .state import BoardBusyError, ReservationBoard, UserInUseError
from .store_client import HttpRecordStore, RecordNotFoundError, RecordStore, StoreError
from .validation import RejectionReason, ReservationRejected, ValidationResult, validate
from .yaml_store import StoreStorageError, YamlRecordStore

__all__ = [
	"SLOT_MINUTES",
	"TimeInterval",
	"has_time_overlap",
	"parse_slot_time",
	"parse_time",
	"time_options",
	"DayBucket",
	"Direction",
	"Granularity",
	"advance",
	"pad_to_weeks",
	"period_bounds",
	"project",
	"weeks",
	"Settings",
	"build_store",
	"configure_logging",
	"load_settings",
	"MeetingRoom",
	"Reservation",
	"User",
	"BoardBusyError",
	"ReservationBoard",
	"UserInUseError",
	"HttpRecordStore",
	"RecordNotFoundError",
	"RecordStore",
	"StoreError",
	"RejectionReason",
	"ReservationRejected",
	"ValidationResult",
	"validate",
	"StoreStorageError",
	"YamlRecordStore",
]
