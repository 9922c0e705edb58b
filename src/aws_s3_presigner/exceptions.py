# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class PresignerWarning(UserWarning): ...


class BasePresignerException(Exception):
    """Top-level exception to capture presigning errors."""


class InvalidInputException(BasePresignerException, ValueError):
    """A presign argument was rejected before any signing work took place."""


class MissingExpectedParameterException(BasePresignerException, ValueError):
    """Some signing stages require specific signing properties to be present."""


class CryptoUnavailableException(BasePresignerException, RuntimeError):
    """The SHA-256 or HMAC-SHA256 primitive could not be used.

    Signing is a purely local computation, so retrying will not help.
    """


class MissingCredentialsException(BasePresignerException):
    """No access key or secret key could be resolved from configuration."""


class InvalidConfigException(BasePresignerException, ValueError):
    """A configuration value had the wrong type or could not be converted."""
