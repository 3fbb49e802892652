"""Container environment for RavenDB servers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from raven_hosting.hosting.resources import EnvironmentCallbackContext

SETUP_MODE = "RAVEN_Setup_Mode"
UNSECURED_ACCESS_ALLOWED = "RAVEN_Security_UnsecuredAccessAllowed"
CERTIFICATE_PATH = "RAVEN_Security_Certificate_Path"
CERTIFICATE_PASSWORD = "RAVEN_Security_Certificate_Password"
SERVER_URL = "RAVEN_ServerUrl"
PUBLIC_SERVER_URL = "RAVEN_PublicServerUrl"
LICENSE = "RAVEN_License"
LICENSE_EULA_ACCEPTED = "RAVEN_License_Eula_Accepted"


@dataclass(slots=True, frozen=True)
class UnsecuredDefaults:
    """Variables a server receives when the caller supplies no overrides."""

    setup_mode: str = "None"
    unsecured_access_allowed: str = "PrivateNetwork"

    def as_environment(self) -> dict[str, str]:
        return {
            SETUP_MODE: self.setup_mode,
            UNSECURED_ACCESS_ALLOWED: self.unsecured_access_allowed,
        }


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def derive_environment(
    base: Mapping[str, str] | None,
    overrides: Mapping[str, object] | None,
    *,
    defaults: UnsecuredDefaults | None = None,
) -> dict[str, str]:
    """Merge container variables into ``base`` without overwriting existing keys.

    With ``overrides=None`` only the unsecured defaults are added. Otherwise
    only the overrides are added and the defaults are skipped entirely, even
    when the overrides leave those variables unset.
    """
    environment = dict(base or {})
    if overrides is None:
        source: Mapping[str, object] = (defaults or UnsecuredDefaults()).as_environment()
    else:
        source = overrides
    for name, value in source.items():
        environment.setdefault(name, _format_value(value))
    return environment


def configure_environment(
    context: EnvironmentCallbackContext,
    overrides: Mapping[str, object] | None,
) -> None:
    """Environment callback form of :func:`derive_environment`."""
    derived = derive_environment(context.environment_variables, overrides)
    context.environment_variables.update(derived)
