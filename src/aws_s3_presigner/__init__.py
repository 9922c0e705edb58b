# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""AWS S3 Presigner builds SigV4 query-authenticated GET URLs for objects in
S3-compatible object stores, without performing any network I/O."""

from __future__ import annotations

from ._http import URI
from ._identity import AWSCredentialIdentity
from .config import PresignerConfig
from .signers import (
    PresignProperties,
    SigV4QueryPresigner,
    canonical_query_string,
    get_s3_presigned_url,
    uri_escape,
)
from .tracing import LoggingTracer

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "URI",
    "AWSCredentialIdentity",
    "LoggingTracer",
    "PresignProperties",
    "PresignerConfig",
    "SigV4QueryPresigner",
    "canonical_query_string",
    "get_s3_presigned_url",
    "uri_escape",
)
