# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Protocol, runtime_checkable


@runtime_checkable
class SigningTracer(Protocol):
    """A sink for the intermediate values produced while presigning.

    Tracers are optional. A presigner without one performs no I/O at all.
    """

    def trace(self, label: str, value: str | bytes, *, sensitive: bool = False) -> None:
        """Record a labeled intermediate value.

        :param label: A short name for the value, such as ``canonical_request``.
        :param value: The value itself. Derived keys are passed as raw bytes.
        :param sensitive: Whether the value is key material. Implementations must
            not emit sensitive values unless explicitly configured to.
        """
        ...
