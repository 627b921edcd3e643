# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Client configuration composed from options registered by independent plugins.

HOW TO ADD A NEW CONFIG OPTION:

1. From a plugin's ``add_options`` method, register the option on the builder:

   .. code-block:: python

       builder.add_option(
           "my_option",
           default=None,  # used when no other source provides a value
           env_var="MY_ENV_VAR",  # optional environment variable name
           config_key="my_config_key",  # optional shared config file key
           validator=_validate_my_option,  # optional, runs after the build
       )

2. For defaults that depend on other options, pass a ``default_factory``. It
   receives the configuration being built and may read any other option from it:

   .. code-block:: python

       builder.add_option(
           "my_option", default_factory=lambda cfg: cfg.other_option.upper()
       )

3. Read the value from the built configuration as ``config.my_option``.

Precedence for each option is: build override, environment variable, shared
config file, then the default or default factory.
"""

import configparser
import logging
import os
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final, Literal

from .exceptions import ConfigurationError

logger: Final = logging.getLogger(__name__)

SOURCE_OVERRIDE = "override"
SOURCE_ENVIRONMENT = "environment"
SOURCE_CONFIG_FILE = "config_file"
SOURCE_DEFAULT = "default"

SourceType = Literal["override", "environment", "config_file", "default"]

DefaultFactory = Callable[[Any], Any]
Validator = Callable[[Any, "Configuration"], None]


@dataclass(frozen=True)
class ConfigValue:
    """Configuration value with metadata about its source."""

    value: Any
    source: SourceType


@dataclass(kw_only=True, frozen=True)
class ConfigOption:
    """Descriptor for a single configuration option."""

    name: str

    default: Any = None
    """The value to use when no other source provides one."""

    default_factory: DefaultFactory | None = None
    """Computes the default from the configuration being built.

    Takes precedence over ``default``.
    """

    validator: Validator | None = None
    """Called with the value and the built configuration once every option has been
    resolved."""

    env_var: str | None = None
    config_key: str | None = None

    lazy: bool = False
    """Whether the value may be a zero-argument supplier.

    Suppliers are called at most once per build and the result is stored.
    """


def load_shared_config_file() -> dict[str, str]:
    config_path = Path(
        os.environ.get("AWS_CONFIG_FILE", Path.home() / ".aws" / "config")
    )
    if not config_path.exists():
        return {}

    parser = configparser.ConfigParser()
    parser.read(config_path)

    profile = os.environ.get("AWS_PROFILE", "default")
    section_name = f"profile {profile}" if profile != "default" else "default"

    if section_name not in parser:
        return {}

    return dict(parser[section_name])


class Configuration:
    """An immutable, built client configuration.

    Option values are read as attributes. Use
    :py:meth:`get_config_value_object` to find out where a value came from.
    """

    def __init__(self, values: Mapping[str, ConfigValue]) -> None:
        object.__setattr__(self, "_values", MappingProxyType(dict(values)))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name].value
        except KeyError:
            raise AttributeError(
                f"{name!r} is not a configuration option of this client"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(
            "Configuration is immutable once built. Build a new configuration to "
            "change option values."
        )

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Configuration is immutable once built.")

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Configuration):
            return False
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Configuration(options={list(self._values)})"

    def get_config_value_object(self, name: str) -> ConfigValue:
        """Get the raw ConfigValue object for an option."""
        return self._values[name]


class _OptionResolver:
    """The configuration as seen by default factories while it is being built.

    Reading an attribute resolves that option on demand, so factories may depend on
    each other in any registration order.
    """

    def __init__(
        self,
        *,
        options: Mapping[str, ConfigOption],
        overrides: Mapping[str, Any],
        environment: Mapping[str, str],
        config_file_loader: Callable[[], Mapping[str, str]],
    ) -> None:
        self._options = options
        self._overrides = overrides
        self._environment = environment
        self._config_file_loader = config_file_loader
        self._config_file_values: Mapping[str, str] | None = None
        self._resolved: dict[str, ConfigValue] = {}
        self._in_progress: set[str] = set()

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.resolve(name).value

    def resolve(self, name: str) -> ConfigValue:
        if name in self._resolved:
            return self._resolved[name]
        option = self._options.get(name)
        if option is None:
            raise ConfigurationError(f"Unknown configuration option: {name}")
        if name in self._in_progress:
            raise ConfigurationError(
                f"Configuration option {name} depends on itself through its default."
            )

        self._in_progress.add(name)
        try:
            value, source = self._raw_value(option)
            if option.lazy and callable(value):
                value = value()
        finally:
            self._in_progress.discard(name)

        resolved = ConfigValue(value, source)
        self._resolved[name] = resolved
        return resolved

    def _raw_value(self, option: ConfigOption) -> tuple[Any, SourceType]:
        if option.name in self._overrides:
            return self._overrides[option.name], SOURCE_OVERRIDE
        if option.env_var and option.env_var in self._environment:
            return self._environment[option.env_var], SOURCE_ENVIRONMENT
        if option.config_key:
            config_file_values = self._load_config_file()
            if option.config_key in config_file_values:
                return config_file_values[option.config_key], SOURCE_CONFIG_FILE
        if option.default_factory is not None:
            return option.default_factory(self), SOURCE_DEFAULT
        return option.default, SOURCE_DEFAULT

    def _load_config_file(self) -> Mapping[str, str]:
        if self._config_file_values is None:
            self._config_file_values = self._config_file_loader()
        return self._config_file_values


class ConfigurationBuilder:
    """A registry of configuration options that is built into a
    :py:class:`Configuration`.

    Plugins register their options before the builder is built. Building doesn't
    modify the builder, so building twice with the same inputs gives equal results.
    """

    def __init__(
        self,
        *,
        environment: Mapping[str, str] | None = None,
        config_file_loader: Callable[[], Mapping[str, str]] | None = None,
    ) -> None:
        """
        :param environment: Environment variables to read options from. Defaults to
            ``os.environ``.
        :param config_file_loader: Loads key-value pairs from the shared config file.
            Defaults to reading the active profile from ``~/.aws/config``.
        """
        self._options: dict[str, ConfigOption] = {}
        self._environment = environment
        self._config_file_loader = config_file_loader or load_shared_config_file

    def add_option(
        self,
        name: str,
        default: Any = None,
        *,
        default_factory: DefaultFactory | None = None,
        validator: Validator | None = None,
        env_var: str | None = None,
        config_key: str | None = None,
        lazy: bool = False,
    ) -> None:
        """Register an option. Registering an existing name replaces it."""
        self._options[name] = ConfigOption(
            name=name,
            default=default,
            default_factory=default_factory,
            validator=validator,
            env_var=env_var,
            config_key=config_key,
            lazy=lazy,
        )

    @property
    def option_names(self) -> tuple[str, ...]:
        return tuple(self._options)

    def build(self, **overrides: Any) -> Configuration:
        """Resolve every registered option into an immutable configuration.

        :param overrides: Option values that take precedence over every other source.
        :raises ConfigurationError: If an override names an unknown option, or if an
            option can't be resolved or fails validation.
        """
        unknown = [name for name in overrides if name not in self._options]
        if unknown:
            raise ConfigurationError(
                f"Invalid configuration option(s): {', '.join(sorted(unknown))}"
            )

        resolver = _OptionResolver(
            options=self._options,
            overrides=overrides,
            environment=(
                self._environment if self._environment is not None else os.environ
            ),
            config_file_loader=self._config_file_loader,
        )
        config = Configuration({name: resolver.resolve(name) for name in self._options})

        for option in self._options.values():
            if option.validator is not None:
                option.validator(getattr(config, option.name), config)

        logger.debug("Built configuration with options: %s", list(self._options))
        return config
