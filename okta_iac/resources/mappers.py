"""Conversion between state records and Okta's nested API representation."""

from typing import Any, Dict, Protocol, TypeVar

from okta_iac.clients.remote import OktaApplication, OktaObject, OktaPolicy
from okta_iac.resources.models import (
    DEFAULT_USER_NAME_TEMPLATE,
    DEFAULT_USER_NAME_TEMPLATE_TYPE,
    PolicyState,
    PolicyType,
    ResourceState,
    SwaAppState,
)

StateT = TypeVar("StateT", bound=ResourceState)

SWA_TEMPLATE_APP_NAME = "template_swa"
SWA_SIGN_ON_MODE = "BROWSER_PLUGIN"
# Pre-configured apps can expose several sign-on modes; SWA always means AUTO_LOGIN
PRECONFIGURED_SIGN_ON_MODE = "AUTO_LOGIN"

_SWA_APP_SETTINGS = {
    "button_field": "buttonField",
    "username_field": "usernameField",
    "password_field": "passwordField",
    "url": "url",
    "url_regex": "loginUrlRegex",
    "redirect_url": "redirectUrl",
    "checkbox": "checkbox",
}


class Mapper(Protocol[StateT]):
    """Bidirectional attribute mapping for one resource subtype."""

    def to_remote_shape(self, state: StateT) -> Dict[str, Any]:
        ...

    def from_remote_shape(self, remote: OktaObject) -> StateT:
        ...


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drop empty string values, like omitempty JSON fields."""
    return {key: value for key, value in values.items() if value != ""}


class SwaAppMapper:
    """Maps ``SwaAppState`` to and from Okta's SWA application JSON."""

    def to_remote_shape(self, state: SwaAppState) -> Dict[str, Any]:
        if state.preconfigured_app:
            name = state.preconfigured_app
            sign_on_mode = PRECONFIGURED_SIGN_ON_MODE
        else:
            name = SWA_TEMPLATE_APP_NAME
            sign_on_mode = SWA_SIGN_ON_MODE

        settings: Dict[str, Any] = {
            "app": _compact({
                api_key: getattr(state, attr) for attr, api_key in _SWA_APP_SETTINGS.items()
            }),
        }
        if state.admin_note or state.enduser_note:
            settings["notes"] = _compact({
                "admin": state.admin_note,
                "enduser": state.enduser_note,
            })

        user_name_template: Dict[str, Any] = {
            "template": state.user_name_template,
            "type": state.user_name_template_type,
        }
        user_name_template.update(_compact({
            "suffix": state.user_name_template_suffix,
            "pushStatus": state.user_name_template_push_status,
        }))

        return {
            "name": name,
            "label": state.label,
            "signOnMode": sign_on_mode,
            "settings": settings,
            "visibility": {
                "autoSubmitToolbar": state.auto_submit_toolbar,
                "hide": {
                    "iOS": state.hide_ios,
                    "web": state.hide_web,
                },
            },
            "accessibility": {
                "selfService": state.accessibility_self_service,
                **_compact({
                    "errorRedirectUrl": state.accessibility_error_redirect_url,
                    "loginRedirectUrl": state.accessibility_login_redirect_url,
                }),
            },
            "credentials": {"userNameTemplate": user_name_template},
        }

    def from_remote_shape(self, remote: OktaObject) -> SwaAppState:
        if not isinstance(remote, OktaApplication):
            raise TypeError(f"Expected an application, got {type(remote).__name__}")

        app_settings = remote.settings.get("app") or {}
        notes = remote.settings.get("notes") or {}
        template = remote.credentials.get("userNameTemplate") or {}
        hide = remote.visibility.get("hide") or {}
        accessibility = remote.accessibility

        name = remote.name or ""
        return SwaAppState.model_construct(
            id=remote.id,
            status=remote.status or "ACTIVE",
            label=remote.label or "",
            name=name,
            sign_on_mode=remote.sign_on_mode or "",
            preconfigured_app="" if name in ("", SWA_TEMPLATE_APP_NAME) else name,
            **{
                attr: app_settings.get(api_key) or ""
                for attr, api_key in _SWA_APP_SETTINGS.items()
            },
            user_name_template=template.get("template", DEFAULT_USER_NAME_TEMPLATE),
            user_name_template_type=template.get("type", DEFAULT_USER_NAME_TEMPLATE_TYPE),
            user_name_template_suffix=template.get("suffix") or "",
            user_name_template_push_status=template.get("pushStatus") or "",
            auto_submit_toolbar=bool(remote.visibility.get("autoSubmitToolbar", False)),
            hide_ios=bool(hide.get("iOS", False)),
            hide_web=bool(hide.get("web", False)),
            accessibility_self_service=bool(accessibility.get("selfService", False)),
            accessibility_error_redirect_url=accessibility.get("errorRedirectUrl") or "",
            accessibility_login_redirect_url=accessibility.get("loginRedirectUrl") or "",
            admin_note=notes.get("admin") or "",
            enduser_note=notes.get("enduser") or "",
            logo="",
            logo_url=remote.link_href("logo") or "",
            groups=None,
            users=None,
        )


class PolicyMapper:
    """Maps ``PolicyState`` to and from Okta's policy JSON."""

    def to_remote_shape(self, state: PolicyState) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": state.name,
            "type": state.type.value,
            "description": state.description,
        }
        if state.priority is not None:
            payload["priority"] = state.priority
        return payload

    def from_remote_shape(self, remote: OktaObject) -> PolicyState:
        if not isinstance(remote, OktaPolicy):
            raise TypeError(f"Expected a policy, got {type(remote).__name__}")
        return PolicyState.model_construct(
            id=remote.id,
            status=remote.status or "ACTIVE",
            name=remote.name or "",
            type=PolicyType(remote.type),
            description=remote.description or "",
            priority=remote.priority,
            system=remote.system,
        )
