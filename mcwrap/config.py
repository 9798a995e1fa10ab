import os
import logging
from typing import Any, Dict, Mapping, Optional

import mcwrap.settings as default_settings
from mcwrap.exceptions import ConfigError

log = logging.getLogger(__name__)

# Settings whose default is None and therefore cannot be coerced by example.
_OPTIONAL_SETTING_TYPES = {"TERM_WAIT": int}

_WAIT_SETTINGS = ("SHUTDOWN_WAIT", "TERM_WAIT", "NOTIFY_WAIT")


class WrapperSettings:
    """
    Merges the defaults in `settings.py` with ``MCWRAP_*`` environment overrides.

    Precedence, lowest first:
    1. Base values from `settings.py`.
    2. Values from a `.env` file (loaded into the environment by `settings.py`).
    3. ``MCWRAP_<NAME>`` variables in the process environment.

    Every setting is exposed as an uppercase attribute.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """
        Loads defaults, then applies overrides from the given environment.

        :param environ: The environment to read overrides from. Defaults to `os.environ`.
        :raises ConfigError: If an override cannot be converted or a wait is negative.
        """
        self._environ = os.environ if environ is None else environ
        self._config: Dict[str, Any] = {}
        self._load_defaults()
        self._load_overrides()
        self._resolve_derived()
        self._validate()

    def __getattr__(self, name: str) -> Any:
        config = self.__dict__.get("_config", {})
        if name in config:
            return config[name]
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

    def get(self, item: str, default: Any = None) -> Any:
        """Provides dictionary-like access to settings with a default value."""
        return self._config.get(item, default)

    def as_dict(self) -> Dict[str, Any]:
        """Returns a copy of the effective configuration."""
        return dict(self._config)

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from settings.py as the baseline."""
        for key in dir(default_settings):
            if key.isupper() and key != "ENV_PREFIX":
                self._config[key] = getattr(default_settings, key)

    def _load_overrides(self) -> None:
        """Applies ``MCWRAP_<NAME>`` environment variables, coerced to each setting's type."""
        for key, original_value in self._config.items():
            env_name = f"{default_settings.ENV_PREFIX}{key}"
            raw_value = self._environ.get(env_name)
            # An empty variable counts as unset, as in compose files with "NAME=".
            if not raw_value:
                continue
            self._config[key] = _coerce(env_name, raw_value, _OPTIONAL_SETTING_TYPES.get(key, type(original_value)))
            log.debug(f"Overridden setting from environment: {key} = {self._config[key]!r}")

    def _resolve_derived(self) -> None:
        """The SIGTERM wait follows the graceful-stop wait unless set explicitly."""
        if self._config.get("TERM_WAIT") is None:
            self._config["TERM_WAIT"] = self._config["SHUTDOWN_WAIT"]

    def _validate(self) -> None:
        for key in _WAIT_SETTINGS:
            if self._config[key] < 0:
                raise ConfigError(f"Setting '{key}' must not be negative, got {self._config[key]}.")


def _coerce(env_name: str, raw_value: str, target_type: type) -> Any:
    """
    Converts a raw environment string to the type of the setting it overrides.

    :param env_name: The environment variable name, used in error messages.
    :param raw_value: The raw string value.
    :param target_type: The type of the setting's default value.
    :return: The converted value.
    :raises ConfigError: If the value cannot be converted.
    """
    if target_type is bool:
        return raw_value.strip().lower() in ('true', '1', 't', 'yes', 'y')
    if target_type is str:
        return raw_value
    try:
        return target_type(raw_value.strip())
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Could not convert value '{raw_value}' for '{env_name}': {e}") from e
