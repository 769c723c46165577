"""Config flow for AsusWRT Mesh integration."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.const import CONF_HOST, CONF_PASSWORD, CONF_USERNAME
from homeassistant.core import HomeAssistant, callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import config_validation as cv

from .asuswrt_client import (
    AsusWrtAuthenticationError,
    AsusWrtClient,
    AsusWrtError,
)
from .const import (
    CONF_COLLAPSE_ROAMING,
    CONF_DEVICE_MAC,
    CONF_DEVICE_NAME,
    CONF_DEVICE_OPERATION_MODE,
    CONF_DEVICE_PRODUCT_ID,
    CONF_DEVICES,
    CONF_SCAN_INTERVAL,
    CONF_SUPPRESS_INITIAL_TICKS,
    DEFAULT_COLLAPSE_ROAMING,
    DEFAULT_SCAN_INTERVAL,
    DEFAULT_SUPPRESS_INITIAL_TICKS,
    DEFAULT_USERNAME,
    DOMAIN,
    ERROR_CANNOT_CONNECT,
    ERROR_INVALID_AUTH,
    ERROR_INVALID_IP,
    ERROR_NO_DEVICES_SELECTED,
    ERROR_NO_ROUTERS,
    ERROR_UNKNOWN,
    IP_ADDRESS_REGEX,
    MAX_SCAN_INTERVAL,
    MIN_SCAN_INTERVAL,
)
from .models import RouterInfo

_LOGGER = logging.getLogger(__name__)

CONF_IP_ADDRESS = "ip_address"

STEP_USER_DATA_SCHEMA = vol.Schema({vol.Required(CONF_IP_ADDRESS): str})

STEP_CREDENTIALS_DATA_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_USERNAME, default=DEFAULT_USERNAME): str,
        vol.Required(CONF_PASSWORD): str,
    }
)


class CannotConnect(Exception):
    """Error to indicate we cannot connect."""


class InvalidAuth(Exception):
    """Error to indicate there is invalid auth."""


class NoRouters(Exception):
    """Error to indicate the router reported no devices."""


def host_from_ip(ip_address: str) -> str | None:
    """Return the router base URL for a dotted-quad address, None if invalid."""
    ip_address = ip_address.strip()
    if not IP_ADDRESS_REGEX.match(ip_address):
        return None
    return f"http://{ip_address}"


async def validate_credentials(
    hass: HomeAssistant, host: str, username: str, password: str
) -> list[RouterInfo]:
    """Log in with a temporary client and return the discovered routers."""
    async with AsusWrtClient(host, username, password) as client:
        try:
            routers = await client.get_routers()
        except AsusWrtAuthenticationError as ex:
            raise InvalidAuth(str(ex)) from ex
        except AsusWrtError as ex:
            raise CannotConnect(str(ex)) from ex

    if not routers:
        raise NoRouters("No routers or access points found")
    return routers


def _credentials_errors(ex: Exception) -> dict[str, str]:
    if isinstance(ex, InvalidAuth):
        return {"base": ERROR_INVALID_AUTH}
    if isinstance(ex, CannotConnect):
        return {"base": ERROR_CANNOT_CONNECT}
    if isinstance(ex, NoRouters):
        return {"base": ERROR_NO_ROUTERS}
    _LOGGER.exception("Unexpected exception validating router: %s", ex)
    return {"base": ERROR_UNKNOWN}


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for AsusWRT Mesh."""

    VERSION = 1

    def __init__(self):
        """Initialize the config flow."""
        self._host: str | None = None
        self._username: str | None = None
        self._password: str | None = None
        self._routers: dict[str, RouterInfo] = {}
        self._reauth_entry: config_entries.ConfigEntry | None = None

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Create the options flow."""
        return OptionsFlowHandler(config_entry)

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Ask for the router IP address."""
        errors = {}

        if user_input is not None:
            host = host_from_ip(user_input[CONF_IP_ADDRESS])
            if host is None:
                errors[CONF_IP_ADDRESS] = ERROR_INVALID_IP
            else:
                await self.async_set_unique_id(host)
                self._abort_if_unique_id_configured()
                self._host = host
                return await self.async_step_credentials()

        return self.async_show_form(
            step_id="user", data_schema=STEP_USER_DATA_SCHEMA, errors=errors
        )

    async def async_step_credentials(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Ask for credentials and check them against the router."""
        errors = {}

        if user_input is not None:
            username = user_input[CONF_USERNAME].strip()
            password = user_input[CONF_PASSWORD]
            try:
                routers = await validate_credentials(self.hass, self._host, username, password)
            except Exception as ex:  # pylint: disable=broad-except
                errors = _credentials_errors(ex)
            else:
                self._username = username
                self._password = password
                self._routers = {router.mac: router for router in routers}
                return await self.async_step_devices()

        return self.async_show_form(
            step_id="credentials",
            data_schema=STEP_CREDENTIALS_DATA_SCHEMA,
            errors=errors,
            description_placeholders={"host": self._host or ""},
        )

    async def async_step_devices(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Select the routers and access points to add."""
        errors = {}

        if user_input is not None:
            selected = user_input.get(CONF_DEVICES, [])
            if not selected:
                errors["base"] = ERROR_NO_DEVICES_SELECTED
            else:
                devices = [
                    {
                        CONF_DEVICE_MAC: router.mac,
                        CONF_DEVICE_NAME: router.display_name,
                        CONF_DEVICE_PRODUCT_ID: router.product_id,
                        CONF_DEVICE_OPERATION_MODE: router.operation_mode.value,
                    }
                    for mac, router in self._routers.items()
                    if mac in selected
                ]
                return self.async_create_entry(
                    title=f"ASUS network ({self._host.removeprefix('http://')})",
                    data={
                        CONF_HOST: self._host,
                        CONF_USERNAME: self._username,
                        CONF_PASSWORD: self._password,
                        CONF_DEVICES: devices,
                    },
                )

        device_options = {mac: router.display_name for mac, router in self._routers.items()}
        return self.async_show_form(
            step_id="devices",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_DEVICES, default=list(device_options)): cv.multi_select(
                        device_options
                    )
                }
            ),
            errors=errors,
        )

    async def async_step_reauth(self, entry_data: Mapping[str, Any]) -> FlowResult:
        """Handle rejected credentials or a changed router address."""
        self._reauth_entry = self.hass.config_entries.async_get_entry(self.context["entry_id"])
        return await self.async_step_reauth_confirm()

    async def async_step_reauth_confirm(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Ask for the router address and credentials again."""
        errors = {}
        entry = self._reauth_entry

        if user_input is not None:
            host = host_from_ip(user_input[CONF_IP_ADDRESS])
            username = user_input[CONF_USERNAME].strip()
            password = user_input[CONF_PASSWORD]
            if host is None:
                errors[CONF_IP_ADDRESS] = ERROR_INVALID_IP
            else:
                try:
                    await validate_credentials(self.hass, host, username, password)
                except Exception as ex:  # pylint: disable=broad-except
                    errors = _credentials_errors(ex)
                else:
                    self.hass.config_entries.async_update_entry(
                        entry,
                        data={
                            **entry.data,
                            CONF_HOST: host,
                            CONF_USERNAME: username,
                            CONF_PASSWORD: password,
                        },
                    )
                    await self.hass.config_entries.async_reload(entry.entry_id)
                    return self.async_abort(reason="reauth_successful")

        current_ip = entry.data.get(CONF_HOST, "").removeprefix("http://") if entry else ""
        current_username = entry.data.get(CONF_USERNAME, DEFAULT_USERNAME) if entry else ""
        return self.async_show_form(
            step_id="reauth_confirm",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_IP_ADDRESS, default=current_ip): str,
                    vol.Optional(CONF_USERNAME, default=current_username): str,
                    vol.Required(CONF_PASSWORD): str,
                }
            ),
            errors=errors,
        )


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle AsusWRT Mesh options."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        """Initialize options flow."""
        super().__init__()
        self._config_entry = config_entry

    @property
    def config_entry(self) -> config_entries.ConfigEntry:
        """Return the config entry."""
        return self._config_entry

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Manage the polling and notification options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        options = self.config_entry.options
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Optional(
                        CONF_SCAN_INTERVAL,
                        default=options.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL),
                    ): vol.All(
                        vol.Coerce(int), vol.Range(min=MIN_SCAN_INTERVAL, max=MAX_SCAN_INTERVAL)
                    ),
                    vol.Optional(
                        CONF_SUPPRESS_INITIAL_TICKS,
                        default=options.get(
                            CONF_SUPPRESS_INITIAL_TICKS, DEFAULT_SUPPRESS_INITIAL_TICKS
                        ),
                    ): vol.All(vol.Coerce(int), vol.Range(min=0, max=10)),
                    vol.Optional(
                        CONF_COLLAPSE_ROAMING,
                        default=options.get(CONF_COLLAPSE_ROAMING, DEFAULT_COLLAPSE_ROAMING),
                    ): bool,
                }
            ),
        )
