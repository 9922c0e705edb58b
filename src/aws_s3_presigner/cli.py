# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Print a presigned GET URL for one object in an S3-compatible store.
"""

import argparse
import logging
import sys
from collections.abc import Sequence

from .config import PresignerConfig
from .exceptions import BasePresignerException
from .signers import PresignProperties
from .tracing import LoggingTracer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="s3-presign",
        description="Generate a SigV4 presigned URL to GET an S3 object",
    )
    parser.add_argument("bucket", help="Bucket name with no slashes")
    parser.add_argument(
        "object_path", help="Object path including its leading slash, e.g. /a/b.jpg"
    )
    parser.add_argument(
        "--host", help="FQDN of the object store (env: S3_PRESIGN_HOST)"
    )
    parser.add_argument(
        "--expires",
        type=int,
        help="Seconds until the URL expires (env: S3_PRESIGN_EXPIRES, default 3600)",
    )
    parser.add_argument("--region", help="Signing region (env: AWS_REGION)")
    parser.add_argument(
        "--service", help="Signing service identifier (env: S3_PRESIGN_SERVICE)"
    )
    parser.add_argument("--access-key", help="Access key (env: AWS_ACCESS_KEY_ID)")
    parser.add_argument(
        "--secret-key", help="Secret access key (env: AWS_SECRET_ACCESS_KEY)"
    )
    parser.add_argument(
        "--timestamp",
        help="Sign as of this YYYYMMDDTHHMMSSZ instant instead of the current time",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Log intermediate signing values to stderr with keys redacted",
    )
    parser.add_argument(
        "--trace-secrets",
        action="store_true",
        help="Include derived key material in trace output",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    tracing = args.trace or args.trace_secrets
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if tracing else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {
        "aws_access_key_id": args.access_key,
        "aws_secret_access_key": args.secret_key,
        "region": args.region,
        "service": args.service,
        "host": args.host,
        "expires": args.expires,
    }
    config = PresignerConfig(**{k: v for k, v in overrides.items() if v is not None})

    try:
        config.resolve()
        if not config.host:
            parser.error("a host is required (--host or S3_PRESIGN_HOST)")
        tracer = LoggingTracer(include_sensitive=args.trace_secrets) if tracing else None
        presigner = config.create_presigner(tracer=tracer)
        signing_properties = PresignProperties(
            region=config.region, service=config.service
        )
        if args.timestamp is not None:
            signing_properties["date"] = args.timestamp
        url = presigner.presign_object(
            bucket=args.bucket,
            object_path=args.object_path,
            host=config.host,
            identity=config.credentials(),
            expires=config.expires,
            signing_properties=signing_properties,
        )
    except BasePresignerException as e:
        print(f"s3-presign: error: {e}", file=sys.stderr)
        return 2

    print(url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
