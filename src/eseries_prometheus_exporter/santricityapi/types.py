"""Raw API response types for the SANtricity Web Services Proxy.

Pydantic models representing the structure of data returned by the
``/devmgr/v2`` REST API with minimal processing. Field names follow Python
conventions and are mapped to the camelCase keys used by the API.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model mapping snake_case fields to camelCase API keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        """Treat JSON null like a missing key so the field default applies."""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class DrivePhysicalLocation(ApiModel):
    """Physical location of a drive inside a tray."""

    slot: int = 0
    tray_ref: str = ""


class Drive(ApiModel):
    """Drive entry from the hardware inventory."""

    id: str = ""
    drive_ref: str = ""
    status: str = ""
    physical_location: DrivePhysicalLocation = Field(
        default_factory=DrivePhysicalLocation,
    )


class Tray(ApiModel):
    """Tray (shelf) entry from the hardware inventory."""

    tray_ref: str = ""
    tray_id: int = 0


class ControllerPhysicalLocation(ApiModel):
    """Physical location of a controller; label is "A" or "B"."""

    label: str = ""


class Controller(ApiModel):
    """Controller entry from the hardware inventory."""

    id: str = ""
    controller_ref: str = ""
    status: str = ""
    physical_location: ControllerPhysicalLocation = Field(
        default_factory=ControllerPhysicalLocation,
    )


class HardwareInventory(ApiModel):
    """Subset of the hardware inventory used by the collectors."""

    drives: list[Drive] = Field(default_factory=list)
    trays: list[Tray] = Field(default_factory=list)
    controllers: list[Controller] = Field(default_factory=list)


class StorageSystem(ApiModel):
    """Storage system record. An empty id means no system was returned."""

    id: str = ""
    name: str = ""
    status: str = ""


class StoragePool(ApiModel):
    """Storage pool (disk pool or volume group).

    Capacities are returned by the API as decimal strings.
    """

    id: str = ""
    name: str = ""
    label: str = ""
    total_raided_space: str = ""
    used_space: str = ""
    free_space: str = ""
    raid_level: str = ""
    raid_status: str = ""
    state: str = ""
    disk_pool: bool = False
    offline: bool = False


class VolumeMapping(ApiModel):
    """Host or host group mapping of a volume."""

    id: str = ""
    lun_mapping_ref: str = ""


class Volume(ApiModel):
    """Volume record. Sizes are returned by the API as decimal strings."""

    id: str = ""
    name: str = ""
    label: str = ""
    capacity: str = ""
    total_size_in_bytes: str = ""
    status: str = ""
    thin_provisioned: bool = False
    list_of_mappings: list[VolumeMapping] = Field(default_factory=list)
    volume_group_ref: str = ""
    disk_pool: bool = False
    offline: bool = False
    mapped: bool = False
    raid_level: str = ""
    volume_use: str = ""


class StatisticsRecord(ApiModel):
    """Analysed statistics record.

    Only the identifying fields are declared; the numeric statistics are kept
    as extra fields under their original API names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def value(self, field_name: str) -> float | None:
        """Return a numeric statistic by API name, or None if unavailable."""
        raw: Any = (self.model_extra or {}).get(field_name)
        # bool is an int subclass but never a statistic
        if isinstance(raw, bool) or not isinstance(raw, int | float):
            return None
        return float(raw)


class AnalysedDriveStatistics(StatisticsRecord):
    """Analysed statistics for a single drive."""

    disk_id: str = ""


class AnalysedControllerStatistics(StatisticsRecord):
    """Analysed statistics for a single controller."""

    controller_id: str = ""


class AnalysedSystemStatistics(StatisticsRecord):
    """Analysed statistics for the whole storage system."""

    storage_system_id: str = ""
