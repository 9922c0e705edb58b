# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
import os
from collections.abc import Callable, Mapping
from typing import Any, ClassVar, Final, Literal

from ._identity import AWSCredentialIdentity
from .exceptions import InvalidConfigException, MissingCredentialsException
from .signers import (
    DEFAULT_EXPIRES,
    DEFAULT_REGION,
    DEFAULT_SERVICE,
    SigV4QueryPresigner,
)

_LOGGER: Final = logging.getLogger(__name__)

SOURCE_CONSTRUCTOR = "constructor"
SOURCE_ENVIRONMENT = "environment"
SOURCE_DEFAULT = "default"
SOURCE_IN_CODE_UPDATE = "in_code_update"

SourceType = Literal[
    "constructor",
    "environment",
    "default",
    "in_code_update",
]


class ConfigValue:
    """Configuration value with metadata about its source"""

    def __init__(self, value: Any, source: SourceType):
        self.value = value
        self.source = source

    def __repr__(self) -> str:
        return f"ConfigValue(source={self.source!r})"


class PresignerConfig:
    """
    Presigner configuration with precedence-based resolution.

    Each field resolves from, in order: the constructor, the environment, the
    default. The constructor uses the sentinel value (...) so that "not provided"
    can be told apart from "explicitly set to None".

    Credentials are read when ``resolve`` is called and are never cached beyond
    the lifetime of the config object.
    """

    CONFIG_FIELDS: ClassVar[dict[str, dict[str, Any]]] = {
        "aws_access_key_id": {
            "env_var": "AWS_ACCESS_KEY_ID",
            "default": None,
            "type": str | None,
        },
        "aws_secret_access_key": {
            "env_var": "AWS_SECRET_ACCESS_KEY",
            "default": None,
            "type": str | None,
        },
        "region": {
            "env_var": "AWS_REGION",
            "default": DEFAULT_REGION,
            "type": str,
        },
        "service": {
            "env_var": "S3_PRESIGN_SERVICE",
            "default": DEFAULT_SERVICE,
            "type": str,
        },
        "host": {
            "env_var": "S3_PRESIGN_HOST",
            "default": None,
            "type": str | None,
        },
        "expires": {
            "env_var": "S3_PRESIGN_EXPIRES",
            "default": DEFAULT_EXPIRES,
            "type": int,
            "converter": int,
        },
    }

    def __init__(
        self,
        *,
        aws_access_key_id: str | None = ...,  # type: ignore[assignment]
        aws_secret_access_key: str | None = ...,  # type: ignore[assignment]
        region: str = ...,  # type: ignore[assignment]
        service: str = ...,  # type: ignore[assignment]
        host: str | None = ...,  # type: ignore[assignment]
        expires: int = ...,  # type: ignore[assignment]
    ):
        self._constructor_values = {
            k: v for k, v in locals().items() if k != "self" and v is not ...
        }
        self._resolved = False

    def resolve(
        self,
        *,
        environment_loader: Callable[[], Mapping[str, str]] | None = None,
    ) -> None:
        """Resolve configuration from all sources

        Args:
            environment_loader: Custom environment loader function
        """
        if self._resolved:
            raise RuntimeError(
                "Config has already been resolved. Multiple calls to resolve() are not allowed."
            )

        env_values = (environment_loader or self._load_environment_values)()

        for field_name, field_info in self.CONFIG_FIELDS.items():
            resolved_value = self._resolve_field(
                field_name, self._constructor_values, env_values, field_info
            )
            _LOGGER.debug(
                "Resolved config field %s from %s.", field_name, resolved_value.source
            )
            setattr(self, f"_{field_name}", resolved_value)

        self._resolved = True

    def _load_environment_values(self) -> Mapping[str, str]:
        return os.environ

    def _resolve_field(
        self,
        field_name: str,
        constructor_values: dict[str, Any],
        env_values: Mapping[str, Any],
        field_config: dict[str, Any],
    ) -> ConfigValue:
        env_var = field_config.get("env_var")

        if field_name in constructor_values:
            value = constructor_values[field_name]
            source = SOURCE_CONSTRUCTOR
        elif env_var and env_var in env_values:
            value = env_values[env_var]
            source = SOURCE_ENVIRONMENT
            converter = field_config.get("converter")
            if converter is not None:
                try:
                    value = converter(value)
                except ValueError as e:
                    raise InvalidConfigException(
                        f"{env_var} could not be parsed for {field_name}: {value!r}"
                    ) from e
        else:
            value = field_config["default"]
            source = SOURCE_DEFAULT

        expected_type = field_config["type"]
        if not isinstance(value, expected_type):
            actual_name = type(value).__name__
            expected_name = getattr(expected_type, "__name__", str(expected_type))
            raise InvalidConfigException(
                f"{field_name} must be {expected_name}, got {actual_name}"
            )

        return ConfigValue(value, source)

    def get_config_value_object(self, field_name: str) -> ConfigValue:
        """Get the raw ConfigValue object for a field"""
        if not self._resolved:
            raise RuntimeError("Config must be resolved before accessing values")
        return getattr(self, f"_{field_name}")

    def credentials(self) -> AWSCredentialIdentity:
        """Build the identity to sign with from the resolved key pair."""
        if not self.aws_access_key_id or not self.aws_secret_access_key:
            raise MissingCredentialsException(
                "An access key and a secret key are required. Pass them explicitly "
                "or set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY."
            )
        return AWSCredentialIdentity(
            access_key_id=self.aws_access_key_id,
            secret_access_key=self.aws_secret_access_key,
        )

    def create_presigner(self, **kwargs: Any) -> SigV4QueryPresigner:
        """Create a presigner using the resolved region, service and expiry.

        :param kwargs: Extra arguments for :py:class:`SigV4QueryPresigner`, such as
            ``clock`` or ``tracer``.
        """
        return SigV4QueryPresigner(
            region=self.region,
            service=self.service,
            default_expires=self.expires,
            **kwargs,
        )

    @property
    def aws_access_key_id(self) -> str | None:
        return self.get_config_value_object("aws_access_key_id").value

    @aws_access_key_id.setter
    def aws_access_key_id(self, value: str | None) -> None:
        self._aws_access_key_id = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def aws_secret_access_key(self) -> str | None:
        return self.get_config_value_object("aws_secret_access_key").value

    @aws_secret_access_key.setter
    def aws_secret_access_key(self, value: str | None) -> None:
        self._aws_secret_access_key = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def region(self) -> str:
        return self.get_config_value_object("region").value

    @region.setter
    def region(self, value: str) -> None:
        self._region = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def service(self) -> str:
        return self.get_config_value_object("service").value

    @service.setter
    def service(self, value: str) -> None:
        self._service = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def host(self) -> str | None:
        return self.get_config_value_object("host").value

    @host.setter
    def host(self, value: str | None) -> None:
        self._host = ConfigValue(value, SOURCE_IN_CODE_UPDATE)

    @property
    def expires(self) -> int:
        return self.get_config_value_object("expires").value

    @expires.setter
    def expires(self, value: int) -> None:
        self._expires = ConfigValue(value, SOURCE_IN_CODE_UPDATE)
