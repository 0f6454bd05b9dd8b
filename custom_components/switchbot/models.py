"""Wire models for the SwitchBot cloud API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .const import COMMAND_TYPE, DEFAULT_PARAMETER, SUCCESS_MESSAGE, SUCCESS_STATUS_CODE


class _ApiModel(BaseModel):
    """Base model accepting the camelCase keys used on the wire."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ApiResponse(_ApiModel):
    """Envelope shared by every API response."""

    status_code: int = Field(alias="statusCode")
    message: str = ""
    body: dict[str, Any] = Field(default_factory=dict)

    @field_validator("body", mode="before")
    @classmethod
    def _null_body(cls, value: Any) -> Any:
        """Treat a ``null`` body as empty."""

        return {} if value is None else value

    @property
    def is_success(self) -> bool:
        """Return True when the response carries the success sentinel."""

        return (
            self.status_code == SUCCESS_STATUS_CODE
            and self.message.lower() == SUCCESS_MESSAGE
        )


class StatusResponse(ApiResponse):
    """Response from ``GET /devices/{deviceId}/status``."""


class CommandResponse(ApiResponse):
    """Response from ``POST /devices/{deviceId}/commands``."""


class DeviceListResponse(ApiResponse):
    """Response from ``GET /devices``."""


class Command(_ApiModel):
    """Outbound command posted to a device."""

    command_type: str = Field(default=COMMAND_TYPE, alias="commandType")
    command: str
    parameter: str = DEFAULT_PARAMETER

    def as_payload(self) -> dict[str, str]:
        """Serialise the command into the JSON body expected by the API."""

        return self.model_dump(by_alias=True)


class DeviceEntry(_ApiModel):
    """Physical device as listed by ``GET /devices``."""

    device_id: str = Field(alias="deviceId")
    device_name: str = Field(default="", alias="deviceName")
    device_type: str = Field(default="", alias="deviceType")
    hub_device_id: str | None = Field(default=None, alias="hubDeviceId")
    enable_cloud_service: bool = Field(default=True, alias="enableCloudService")


class RemoteEntry(_ApiModel):
    """Infrared remote as listed by ``GET /devices``."""

    device_id: str = Field(alias="deviceId")
    device_name: str = Field(default="", alias="deviceName")
    remote_type: str = Field(default="", alias="remoteType")
    hub_device_id: str | None = Field(default=None, alias="hubDeviceId")


class DeviceList(_ApiModel):
    """Body of the device listing response."""

    device_list: list[DeviceEntry] = Field(default_factory=list, alias="deviceList")
    infrared_remote_list: list[RemoteEntry] = Field(
        default_factory=list, alias="infraredRemoteList"
    )


class BotStatusBody(_ApiModel):
    """Status body reported by a Bot."""

    power: str | None = None


class HumidifierStatusBody(_ApiModel):
    """Status body reported by a Humidifier."""

    power: str = "off"
    humidity: float = 0
    temperature: float = 0
    nebulization_efficiency: int = Field(default=0, alias="nebulizationEfficiency")
    auto: bool = False
    child_lock: bool = Field(default=False, alias="childLock")
    sound: bool = False
    lack_water: bool | None = Field(default=None, alias="lackWater")


class HubStatusBody(_ApiModel):
    """Status body reported by a Hub Mini (no fields are consumed)."""
