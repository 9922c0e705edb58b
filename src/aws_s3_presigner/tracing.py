# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
import warnings
from typing import Final

from .exceptions import PresignerWarning
from .interfaces.tracing import SigningTracer

_LOGGER: Final = logging.getLogger(__name__)

REDACTED: Final = "<redacted>"


class LoggingTracer(SigningTracer):
    """Writes traced presigning values to a :py:class:`logging.Logger`.

    Key material is replaced with ``<redacted>`` unless the tracer is built with
    ``include_sensitive=True``. Byte values are rendered as lower-case hex.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger | None = None,
        level: int = logging.DEBUG,
        include_sensitive: bool = False,
    ) -> None:
        self._logger = logger if logger is not None else _LOGGER
        self._level = level
        self._include_sensitive = include_sensitive
        if include_sensitive:
            warnings.warn(
                "Trace output includes raw key material. Do not enable this "
                "outside of local debugging.",
                PresignerWarning,
                stacklevel=2,
            )

    def trace(self, label: str, value: str | bytes, *, sensitive: bool = False) -> None:
        if not self._logger.isEnabledFor(self._level):
            return
        if sensitive and not self._include_sensitive:
            rendered = REDACTED
        elif isinstance(value, bytes):
            rendered = value.hex()
        else:
            rendered = value
        self._logger.log(self._level, "%s:\n%s", label, rendered)
