from .base import BaseRecordStore
from .factory import get_record_store
from .types import EyePrescription, PatientRecord

__all__ = ["BaseRecordStore", "EyePrescription", "PatientRecord", "get_record_store"]
