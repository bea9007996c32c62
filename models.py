from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any, List

def _id_to_str(value: Any) -> Any:
    # The licensing API returns numeric ids.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value

def _number_to_str(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value

# Activation state

class ActivationStatus(str, Enum):
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"

class ActivationParams(BaseModel):
    license_key: str = ""
    uid: str = ""
    url: str = ""
    version: str = ""
    install_id: Optional[str] = None

class ActivationRecord(BaseModel):
    status: ActivationStatus = ActivationStatus.DEACTIVATED
    install_id: str = ""
    activation_params: ActivationParams = Field(default_factory=ActivationParams)
    install_data: Dict[str, Any] = Field(default_factory=dict)
    date: Optional[datetime] = None

    @field_validator("install_id", mode="before")
    @classmethod
    def coerce_install_id(cls, value):
        return _id_to_str(value)

    def is_active(self) -> bool:
        if not self.install_id or not self.activation_params.uid or not self.activation_params.license_key:
            return False
        return self.status == ActivationStatus.ACTIVATED

# Licensing API responses

class ActivationResponse(BaseModel):
    """Install created or updated by ``activate.json``; other fields are kept as install data."""
    model_config = ConfigDict(extra="allow")

    install_id: str
    install_public_key: Optional[str] = None
    install_secret_key: Optional[str] = None
    license_plan_name: Optional[str] = None

    @field_validator("install_id", mode="before")
    @classmethod
    def coerce_install_id(cls, value):
        return _id_to_str(value)

class DeactivationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return _id_to_str(value)

class UpdateInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: Optional[str] = None
    url: Optional[str] = None
    requires_platform_version: Optional[str] = None
    requires_language_version: Optional[str] = Field(None, alias="requires_programming_language_version")
    tested_up_to: Optional[str] = Field(None, alias="tested_up_to_version")
    updated: Optional[str] = None
    created: Optional[str] = None

    @field_validator("version", "requires_platform_version", "requires_language_version", "tested_up_to", mode="before")
    @classmethod
    def coerce_version(cls, value):
        return _number_to_str(value)

    @property
    def updated_at(self) -> Optional[str]:
        return self.updated if self.updated is not None else self.created

class PluginInfo(BaseModel):
    description: Optional[str] = None
    banner_url: Optional[str] = None
    card_banner_url: Optional[str] = None

class Addon(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    slug: Optional[str] = None
    title: Optional[str] = None
    is_pricing_visible: bool = False
    link: str = ""
    is_premium: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return _id_to_str(value)

class AddonListResponse(BaseModel):
    plugins: List[Dict[str, Any]] = Field(default_factory=list)

# Host update UI payloads

class UpdateOffer(BaseModel):
    slug: str
    plugin: str
    new_version: str
    tested: Optional[str] = None
    package: Optional[str] = None

class PluginInformation(BaseModel):
    name: str
    slug: str
    author: str
    version: Optional[str] = None
    last_updated: Optional[str] = None
    requires: Optional[str] = None
    requires_language: Optional[str] = None
    tested: Optional[str] = None
    download_link: Optional[str] = None
    sections: Dict[str, str] = Field(default_factory=dict)
    banners: Dict[str, str] = Field(default_factory=dict)

# Service API models

class LicenseActivationRequest(BaseModel):
    licenseKey: str

class LicenseActionResponse(BaseModel):
    success: bool
    message: Optional[str] = None

class LicenseStatusResponse(BaseModel):
    active: bool
    status: str
    installId: Optional[str] = None
    planName: Optional[str] = None
    activatedAt: Optional[str] = None

class UpdateInfoResponse(BaseModel):
    available: bool
    version: Optional[str] = None
    url: Optional[str] = None
    requires_platform_version: Optional[str] = None
    requires_language_version: Optional[str] = None
    tested_up_to: Optional[str] = None
    updated_at: Optional[str] = None

class PurgeRequest(BaseModel):
    action: str = "update"
    type: str = "plugin"
    packages: List[str] = Field(default_factory=list)

class PurgeResponse(BaseModel):
    purged: bool

class HealthCheckResponse(BaseModel):
    status: str
    service: str
    version: str
    pluginId: Optional[str] = None
    siteUid: Optional[str] = None
