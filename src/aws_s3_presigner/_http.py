# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlunparse


@dataclass(kw_only=True, frozen=True)
class URI:
    """Target location of a presigned request."""

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The host, for example ``nrs.objectstore.gov.bc.ca``. A ``:port`` suffix is
    carried verbatim, as it is in the signed ``host`` header."""

    path: str | None = None
    """Path component of the URI, already in its canonical form."""

    query: str | None = None
    """Query component of the URI as string, already escaped."""

    @property
    def netloc(self) -> str:
        """The network location, identical to the signed ``host`` header value."""
        return self.host

    def build(self) -> str:
        """Construct URI string representation.

        Returns a string of the form ``{scheme}://{host}{path}?{query}``
        """
        components = (
            self.scheme,
            self.netloc,
            self.path or "",
            "",  # params
            self.query,
            "",  # fragment
        )
        return urlunparse(components)
