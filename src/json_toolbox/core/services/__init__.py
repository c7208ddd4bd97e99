# Services package

from .json_conversion_service import JsonConversionService
from .json_format_service import JsonFormatService, JsonStats
from .json_repair_service import JsonRepairService, RepairOutcome

__all__ = [
    "JsonConversionService",
    "JsonFormatService",
    "JsonRepairService",
    "JsonStats",
    "RepairOutcome",
]
