"""Domain models for the spreadsheet bulk import tool.

Entity types, template layouts, parse/import results, the typed per-entity
rows the reconciliation engine works on, and configuration.
"""

from .config_models import DatabaseConfig, ImportConfig
from .entity_type import EntityType, UnknownEntityType
from .error_record import ErrorRecord
from .import_result import ImportResult, ImportRowError
from .parse_result import ParsedRow, ParseResult
from .template import TemplateColumn, TemplateDefinition

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    # Import targets and layouts
    "EntityType",
    "UnknownEntityType",
    "TemplateColumn",
    "TemplateDefinition",
    # Processing models
    "ErrorRecord",
    "ImportResult",
    "ImportRowError",
    "ParsedRow",
    "ParseResult",
]
