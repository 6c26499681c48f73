"""Typed state records for each managed resource subtype."""

from enum import Enum
from typing import ClassVar, List, Literal, Optional, Set, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from okta_iac.clients.remote import AppUserAssignment

StatusValue = Literal["ACTIVE", "INACTIVE"]

DEFAULT_USER_NAME_TEMPLATE = "${source.login}"
DEFAULT_USER_NAME_TEMPLATE_TYPE = "BUILT_IN"
VALID_URL_SCHEMES = ("http", "https")


class PolicyType(str, Enum):
    """Okta policy types."""
    OKTA_SIGN_ON = "OKTA_SIGN_ON"
    PASSWORD = "PASSWORD"
    MFA_ENROLL = "MFA_ENROLL"
    IDP_DISCOVERY = "IDP_DISCOVERY"
    ACCESS_POLICY = "ACCESS_POLICY"
    PROFILE_ENROLLMENT = "PROFILE_ENROLLMENT"


IDENTITY_ENGINE_POLICY_TYPES = frozenset({
    PolicyType.ACCESS_POLICY,
    PolicyType.PROFILE_ENROLLMENT,
})


class ResourceState(BaseModel):
    """Common behaviour of state records.

    ``COMPUTED_FIELDS`` are server-assigned and never sent to the API.
    ``LOCAL_FIELDS`` exist only in state and are carried across reads.
    ``SUBRESOURCE_FIELDS`` are synchronized by separate assignment calls.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    COMPUTED_FIELDS: ClassVar[Tuple[str, ...]] = ("id",)
    LOCAL_FIELDS: ClassVar[Tuple[str, ...]] = ()
    SUBRESOURCE_FIELDS: ClassVar[Tuple[str, ...]] = ()

    id: str = ""
    status: StatusValue = "ACTIVE"

    @property
    def exists(self) -> bool:
        """Whether the state refers to a created remote object."""
        return bool(self.id)

    @classmethod
    def writable_fields(cls) -> List[str]:
        """Fields the user may set (everything but computed fields)."""
        return [name for name in cls.model_fields if name not in cls.COMPUTED_FIELDS]

    def writable_values(self) -> dict:
        return {name: getattr(self, name) for name in self.writable_fields()}


class SwaAppState(ResourceState):
    """Secure Web Authentication (SWA) application."""

    COMPUTED_FIELDS: ClassVar[Tuple[str, ...]] = ("id", "name", "sign_on_mode", "logo_url")
    LOCAL_FIELDS: ClassVar[Tuple[str, ...]] = ("logo",)
    SUBRESOURCE_FIELDS: ClassVar[Tuple[str, ...]] = ("groups", "users")

    label: str = Field(..., min_length=1)
    name: str = ""
    sign_on_mode: str = ""
    preconfigured_app: str = ""

    button_field: str = ""
    username_field: str = ""
    password_field: str = ""
    url: str = ""
    url_regex: str = ""
    checkbox: str = ""
    redirect_url: str = ""

    user_name_template: str = DEFAULT_USER_NAME_TEMPLATE
    user_name_template_type: str = DEFAULT_USER_NAME_TEMPLATE_TYPE
    user_name_template_suffix: str = ""
    user_name_template_push_status: str = ""

    auto_submit_toolbar: bool = False
    hide_ios: bool = False
    hide_web: bool = False

    accessibility_self_service: bool = False
    accessibility_error_redirect_url: str = ""
    accessibility_login_redirect_url: str = ""

    admin_note: str = ""
    enduser_note: str = ""

    logo: str = ""
    logo_url: str = ""

    # None means assignments are not managed by this resource
    groups: Optional[Set[str]] = None
    users: Optional[List[AppUserAssignment]] = None

    @field_validator("url", "redirect_url", "accessibility_error_redirect_url",
                     "accessibility_login_redirect_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL attributes when they are set."""
        if not v:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in VALID_URL_SCHEMES or not parsed.netloc:
            raise ValueError(
                f"expected a URL with scheme {' or '.join(VALID_URL_SCHEMES)}, got '{v}'"
            )
        return v

    @field_validator("users")
    @classmethod
    def sort_users(cls, v: Optional[List[AppUserAssignment]]) -> Optional[List[AppUserAssignment]]:
        """Keep users ordered by id so comparisons ignore API ordering."""
        if v is None:
            return v
        return sorted(v, key=lambda user: user.id)


class PolicyState(ResourceState):
    """Okta policy."""

    COMPUTED_FIELDS: ClassVar[Tuple[str, ...]] = ("id", "system")

    name: str = Field(..., min_length=1)
    type: PolicyType
    description: str = ""
    priority: Optional[int] = Field(None, ge=1)
    system: bool = False


class PolicyDataState(BaseModel):
    """Result of the policy data source: inputs plus computed id and status."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    type: PolicyType
    id: str = ""
    status: str = ""
