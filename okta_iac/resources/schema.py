"""Declarative schema tables exposed to the IaC engine."""

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from okta_iac.resources.models import PolicyType


class AttributeType(str, Enum):
    STRING = "string"
    BOOL = "bool"
    INT = "int"
    SET = "set"
    LIST = "list"


class AttributeEffect(str, Enum):
    """How an attribute participates in planning."""
    REQUIRED = "required"
    OPTIONAL = "optional"
    COMPUTED = "computed"
    # Optional, filled in by the server when omitted
    OPTIONAL_COMPUTED = "optional_computed"


class AttributeSpec(BaseModel):
    """One entry of a resource schema."""

    model_config = ConfigDict(frozen=True)

    type: AttributeType
    effect: AttributeEffect
    description: str = ""
    default: Optional[object] = None
    allowed_values: Tuple[str, ...] = ()
    sensitive: bool = False


Schema = Dict[str, AttributeSpec]


def _attr(
    type_: AttributeType,
    effect: AttributeEffect,
    description: str,
    default: Optional[object] = None,
    allowed_values: Tuple[str, ...] = (),
    sensitive: bool = False,
) -> AttributeSpec:
    return AttributeSpec(
        type=type_,
        effect=effect,
        description=description,
        default=default,
        allowed_values=allowed_values,
        sensitive=sensitive,
    )


_S, _B, _I = AttributeType.STRING, AttributeType.BOOL, AttributeType.INT
_REQ, _OPT, _COMP = AttributeEffect.REQUIRED, AttributeEffect.OPTIONAL, AttributeEffect.COMPUTED
_STATUSES = ("ACTIVE", "INACTIVE")
_POLICY_TYPES = tuple(policy_type.value for policy_type in PolicyType)

APP_BASE_SCHEMA: Schema = {
    "label": _attr(_S, _REQ, "Application label"),
    "name": _attr(_S, _COMP, "Name assigned by Okta"),
    "sign_on_mode": _attr(_S, _COMP, "Sign-on mode of the application"),
    "status": _attr(_S, _OPT, "Status of the application", default="ACTIVE",
                    allowed_values=_STATUSES),
    "logo": _attr(_S, _OPT, "Local file path to the logo"),
    "logo_url": _attr(_S, _COMP, "URL of the uploaded logo"),
    "admin_note": _attr(_S, _OPT, "Application notes for admins"),
    "enduser_note": _attr(_S, _OPT, "Application notes for end users"),
    "auto_submit_toolbar": _attr(_B, _OPT, "Display auto submit toolbar", default=False),
    "hide_ios": _attr(_B, _OPT, "Do not display application icon on mobile app", default=False),
    "hide_web": _attr(_B, _OPT, "Do not display application icon to users", default=False),
    "accessibility_self_service": _attr(_B, _OPT, "Enable self service", default=False),
    "accessibility_error_redirect_url": _attr(_S, _OPT, "Custom error page URL"),
    "accessibility_login_redirect_url": _attr(_S, _OPT, "Custom login page URL"),
    "user_name_template": _attr(_S, _OPT, "Username template",
                                default="${source.login}"),
    "user_name_template_type": _attr(_S, _OPT, "Username template type", default="BUILT_IN",
                                     allowed_values=("NONE", "CUSTOM", "BUILT_IN")),
    "user_name_template_suffix": _attr(_S, _OPT, "Username template suffix"),
    "user_name_template_push_status": _attr(_S, _OPT, "Push username on update",
                                            allowed_values=("PUSH", "DONT_PUSH")),
    "groups": _attr(AttributeType.SET, _OPT, "Groups associated with the application"),
    "users": _attr(AttributeType.SET, _OPT, "Users associated with the application",
                   sensitive=True),
}

SWA_APP_SCHEMA: Schema = {
    **APP_BASE_SCHEMA,
    "preconfigured_app": _attr(_S, _OPT, "Preconfigured app name"),
    "button_field": _attr(_S, _OPT, "Login button field"),
    "password_field": _attr(_S, _OPT, "Login password field"),
    "username_field": _attr(_S, _OPT, "Login username field"),
    "url": _attr(_S, _OPT, "Login URL"),
    "url_regex": _attr(_S, _OPT, "A regex that further restricts URL to the specified regex"),
    "checkbox": _attr(_S, _OPT, "CSS selector for the checkbox"),
    "redirect_url": _attr(
        _S, _OPT,
        "If going to the login page URL redirects to another page, then enter that URL here",
    ),
}

POLICY_SCHEMA: Schema = {
    "name": _attr(_S, _REQ, "Policy name"),
    "type": _attr(_S, _REQ, "Policy type", allowed_values=_POLICY_TYPES),
    "description": _attr(_S, _OPT, "Policy description"),
    "priority": _attr(_I, AttributeEffect.OPTIONAL_COMPUTED,
                      "Policy priority; the server assigns the lowest when omitted"),
    "status": _attr(_S, _OPT, "Policy status", default="ACTIVE", allowed_values=_STATUSES),
    "system": _attr(_B, _COMP, "Whether the policy is a system policy"),
}

POLICY_DATA_SOURCE_SCHEMA: Schema = {
    "name": _attr(_S, _REQ, "Name of the policy"),
    "type": _attr(
        _S, _REQ,
        f"Policy type: {', '.join(_POLICY_TYPES)}",
        allowed_values=_POLICY_TYPES,
    ),
    "status": _attr(_S, _COMP, "Status of the policy"),
}


def required_attributes(schema: Schema) -> Tuple[str, ...]:
    return tuple(name for name, spec in schema.items() if spec.effect is AttributeEffect.REQUIRED)


def computed_attributes(schema: Schema) -> Tuple[str, ...]:
    return tuple(name for name, spec in schema.items() if spec.effect is AttributeEffect.COMPUTED)
