# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import datetime
import hmac
import logging
import re
from collections.abc import Callable, Iterable
from hashlib import sha256
from typing import Final, Required, TypedDict
from urllib.parse import quote

from ._http import URI
from ._identity import AWSCredentialIdentity
from .exceptions import (
    CryptoUnavailableException,
    InvalidInputException,
    MissingExpectedParameterException,
)
from .interfaces.identity import AWSCredentialsIdentity as _AWSCredentialsIdentity
from .interfaces.tracing import SigningTracer
from .utils import ensure_utc

_LOGGER: Final = logging.getLogger(__name__)

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
SIGV4_ALGORITHM: str = "AWS4-HMAC-SHA256"
SIGV4_TERMINATOR: str = "aws4_request"
UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
SIGNED_HEADERS: str = "host"

DEFAULT_REGION: str = "us-east-1"
DEFAULT_SERVICE: str = "s3"
DEFAULT_METHOD: str = "GET"
DEFAULT_EXPIRES: int = 3600
# Longest validity SigV4 query authentication accepts (seven days).
MAX_EXPIRES: int = 604800

_TIMESTAMP_RE = re.compile(r"^\d{8}T\d{6}Z$")
# A DNS name or bracketed IPv6 literal, with an optional numeric port.
_HOST_RE = re.compile(
    r"(?:[A-Za-z0-9](?:[A-Za-z0-9.-]*[A-Za-z0-9])?|\[[0-9A-Fa-f:.]+\])(?::\d{1,5})?"
)


class PresignProperties(TypedDict, total=False):
    region: Required[str]
    service: Required[str]
    date: str
    expires: int
    uri_encode_path: bool


def uri_escape(value: str, *, escape_slash: bool = False) -> str:
    """Percent-encode a value, preserving only RFC 3986 unreserved characters.

    Letters, digits and ``-``, ``_``, ``.``, ``~`` are left as they are. Every other
    byte of the UTF-8 encoding becomes ``%XX`` with upper-case hex digits, so a
    space is ``%20`` and never ``+``.

    :param value: The string to escape.
    :param escape_slash: Whether ``/`` is escaped too. This is needed when a slash
        appears inside a single encoded value, such as the credential scope, and not
        for bare parameter names or paths.
    """
    return quote(value, safe="" if escape_slash else "/")


def canonical_query_string(params: Iterable[tuple[str, str]]) -> str:
    """Build a canonical query string from unescaped ``(name, value)`` pairs.

    Names and values are escaped separately, with slashes escaped only in values,
    then joined as ``name=value`` pairs separated by ``&`` in sorted order. Input
    order does not matter.
    """
    query_parts = (
        (uri_escape(key), uri_escape(value, escape_slash=True))
        for key, value in params
    )
    # key-value pairs must be in sorted order for their encoded forms.
    return "&".join(f"{key}={value}" for key, value in sorted(query_parts))


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class SigV4QueryPresigner:
    """Builds presigned URLs using AWS Signature Version 4 query authentication.

    Only the ``host`` header is signed and the payload is always the literal
    ``UNSIGNED-PAYLOAD`` token. The presigner holds configuration only, so one
    instance can be shared freely between threads.
    """

    def __init__(
        self,
        *,
        region: str = DEFAULT_REGION,
        service: str = DEFAULT_SERVICE,
        method: str = DEFAULT_METHOD,
        scheme: str = "https",
        default_expires: int = DEFAULT_EXPIRES,
        clock: Callable[[], datetime.datetime] | None = None,
        tracer: SigningTracer | None = None,
    ) -> None:
        """Construct a presigner.

        :param region: Region used in the credential scope when the signing
            properties don't name one.
        :param service: Service identifier used in the credential scope when the
            signing properties don't name one.
        :param method: HTTP method the URL will be used with.
        :param scheme: Scheme of the generated URL.
        :param default_expires: Validity in seconds when none is given per call.
        :param clock: Returns the current time. It is read exactly once per
            presigned URL. Defaults to the system clock in UTC.
        :param tracer: Optional sink for intermediate signing values.
        """
        self._region = region
        self._service = service
        self._method = method.upper()
        self._scheme = scheme
        self._default_expires = default_expires
        self._clock = clock if clock is not None else _utc_now
        self._tracer = tracer

    @property
    def region(self) -> str:
        return self._region

    @property
    def service(self) -> str:
        return self._service

    def presign_object(
        self,
        *,
        bucket: str,
        object_path: str,
        host: str,
        identity: AWSCredentialIdentity,
        expires: int | None = None,
        signing_properties: PresignProperties | None = None,
    ) -> str:
        """Generate a presigned URL for a path-style object location.

        The canonical URI is ``/`` + ``bucket`` + ``object_path``.

        :param bucket: Bucket name, without slashes.
        :param object_path: Object path including its leading slash, for example
            ``/myparentfolder/myobject.obj``.
        :param host: Fully qualified host name of the object store.
        :param identity: Credentials to sign with.
        :param expires: Seconds the URL stays valid. Overrides any ``expires``
            signing property.
        :param signing_properties: Optional overrides for region, service, date
            and path encoding.
        """
        if not bucket:
            raise InvalidInputException("Bucket name must not be empty.")
        if "/" in bucket:
            raise InvalidInputException(
                f"Bucket name must not contain slashes. Received: {bucket!r}"
            )
        if not object_path or not object_path.startswith("/"):
            raise InvalidInputException(
                f"Object path must begin with '/'. Received: {object_path!r}"
            )

        properties = self._with_defaults(signing_properties)
        if expires is not None:
            properties["expires"] = expires
        return self.presign(
            host=host,
            path=f"/{bucket}{object_path}",
            identity=identity,
            signing_properties=properties,
        )

    def presign(
        self,
        *,
        host: str,
        path: str,
        identity: AWSCredentialIdentity,
        signing_properties: PresignProperties | None = None,
    ) -> str:
        """Generate a presigned URL for an arbitrary path on ``host``.

        :param host: Fully qualified host name, used for the URL and the signed
            ``host`` header.
        :param path: Request path, beginning with ``/``.
        :param identity: Credentials to sign with.
        :param signing_properties: Optional overrides for region, service, date,
            expiry and path encoding.
        """
        # Everything is validated and the timestamp is captured once before any
        # hashing starts.
        self._validate_identity(identity=identity)
        self._validate_destination(host=host, path=path)
        new_signing_properties = self._normalize_signing_properties(
            signing_properties=self._with_defaults(signing_properties)
        )

        canonical_path = self._format_canonical_path(
            path=path, signing_properties=new_signing_properties
        )
        canonical_query = self.canonical_query(
            signing_properties=new_signing_properties,
            access_key_id=identity.access_key_id,
        )
        canonical_headers = self._format_canonical_headers(host=host)
        self._trace("canonical_query", canonical_query)
        self._trace("canonical_headers", canonical_headers)
        self._trace("signed_headers", SIGNED_HEADERS)

        canonical_request = self._format_canonical_request(
            canonical_path=canonical_path,
            canonical_query=canonical_query,
            canonical_headers=canonical_headers,
        )
        self._trace("canonical_request", canonical_request)

        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request,
            signing_properties=new_signing_properties,
        )
        self._trace("string_to_sign", string_to_sign)

        signature = self.signature(
            string_to_sign=string_to_sign,
            secret_key=identity.secret_access_key,
            signing_properties=new_signing_properties,
        )
        self._trace("signature", signature)

        _LOGGER.debug(
            "Presigned %s %s%s with scope %s, valid for %s seconds.",
            self._method,
            host,
            canonical_path,
            self._scope(signing_properties=new_signing_properties),
            new_signing_properties.get("expires"),
        )

        uri = URI(
            scheme=self._scheme,
            host=host,
            path=canonical_path,
            query=f"{canonical_query}&X-Amz-Signature={signature}",
        )
        presigned_url = uri.build()
        self._trace("presigned_url", presigned_url)
        return presigned_url

    def canonical_request(
        self,
        *,
        signing_properties: PresignProperties,
        host: str,
        path: str,
        access_key_id: str,
    ) -> str:
        """The canonical request is a standardized string laying out the components used
        in the SigV4 signing algorithm. This is useful to quickly compare inputs to find
        signature mismatches and unintended variances.

        For query authentication with only the host header signed it is:
            <HTTPMethod>\n
            <CanonicalURI>\n
            <CanonicalQueryString>\n
            host:<host>\n
            \n
            host\n
            UNSIGNED-PAYLOAD

        The blank line closes the canonical headers block. Leaving it out makes every
        signature invalid.

        :param signing_properties:
            PresignProperties with a ``date`` already set.
        :param host:
            Host the URL targets.
        :param path:
            Request path, beginning with ``/``.
        :param access_key_id:
            Access key embedded in ``X-Amz-Credential``.
        """
        canonical_path = self._format_canonical_path(
            path=path, signing_properties=signing_properties
        )
        canonical_query = self.canonical_query(
            signing_properties=signing_properties, access_key_id=access_key_id
        )
        return self._format_canonical_request(
            canonical_path=canonical_path,
            canonical_query=canonical_query,
            canonical_headers=self._format_canonical_headers(host=host),
        )

    def canonical_query(
        self, *, signing_properties: PresignProperties, access_key_id: str
    ) -> str:
        """Build the canonical query string carrying the ``X-Amz-*`` parameters.

        ``X-Amz-Signature`` is not part of it; it is appended to the final URL once
        computed.
        """
        date = signing_properties.get("date")
        if date is None:
            raise MissingExpectedParameterException(
                "Cannot generate canonical_query without a valid date "
                f"in your signing_properties. Current value: {date}"
            )
        expires = signing_properties.get("expires", self._default_expires)
        credential = (
            f"{access_key_id}/{self._scope(signing_properties=signing_properties)}"
        )
        params = {
            "X-Amz-SignedHeaders": SIGNED_HEADERS,
            "X-Amz-Expires": str(expires),
            "X-Amz-Date": date,
            "X-Amz-Credential": credential,
            "X-Amz-Algorithm": SIGV4_ALGORITHM,
        }
        return canonical_query_string(params.items())

    def string_to_sign(
        self,
        *,
        canonical_request: str,
        signing_properties: PresignProperties,
    ) -> str:
        """The string to sign is the second step of our signing algorithm which
        concatenates the formal identifier of our signing algorithm, the signing
        DateTime, the scope of our credentials, and a hash of our previously generated
        canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \n
            RequestDateTime \n
            CredentialScope  \n
            HashedCanonicalRequest

        :param canonical_request:
            String generated from the `canonical_request` method.
        :param signing_properties:
            PresignProperties to define signing primitives such as
            the target service, region, and date.
        """
        date = signing_properties.get("date")
        if date is None:
            raise MissingExpectedParameterException(
                "Cannot generate string_to_sign without a valid date "
                f"in your signing_properties. Current value: {date}"
            )
        return (
            f"{SIGV4_ALGORITHM}\n"
            f"{date}\n"
            f"{self._scope(signing_properties=signing_properties)}\n"
            f"{self._sha256_hex(canonical_request)}"
        )

    def signature(
        self,
        *,
        string_to_sign: str,
        secret_key: str,
        signing_properties: PresignProperties,
    ) -> str:
        """Sign the string to sign with the scoped signing key.

        :returns: The signature as 64 lower-case hex characters.
        """
        signing_key = self.signing_key(
            secret_key=secret_key, signing_properties=signing_properties
        )
        return self._hash(key=signing_key, value=string_to_sign).hex()

    def signing_key(
        self, *, secret_key: str, signing_properties: PresignProperties
    ) -> bytes:
        """Derive the signing key scoped to a date, region and service.

        Each step keys the next with its raw digest. The keys are never hex or base64
        encoded in between.
        """

        # Components of Signing Key Calculation
        #
        # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        # SigningKey = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        date = signing_properties.get("date")
        if date is None:
            raise MissingExpectedParameterException(
                "Cannot derive a signing key without a valid date "
                f"in your signing_properties. Current value: {date}"
            )
        k_date = self._hash(key=f"AWS4{secret_key}".encode(), value=date[0:8])
        self._trace("date_key", k_date, sensitive=True)
        k_region = self._hash(key=k_date, value=signing_properties["region"])
        self._trace("region_key", k_region, sensitive=True)
        k_service = self._hash(key=k_region, value=signing_properties["service"])
        self._trace("service_key", k_service, sensitive=True)
        k_signing = self._hash(key=k_service, value=SIGV4_TERMINATOR)
        self._trace("signing_key", k_signing, sensitive=True)
        return k_signing

    def _hash(self, key: bytes, value: str) -> bytes:
        try:
            return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()
        except ValueError as e:
            raise CryptoUnavailableException(
                f"HMAC-SHA256 is unavailable: {e}"
            ) from e

    def _sha256_hex(self, value: str) -> str:
        try:
            return sha256(value.encode()).hexdigest()
        except ValueError as e:
            raise CryptoUnavailableException(f"SHA-256 is unavailable: {e}") from e

    def _trace(self, label: str, value: str | bytes, *, sensitive: bool = False) -> None:
        if self._tracer is not None:
            self._tracer.trace(label, value, sensitive=sensitive)

    def _validate_identity(self, *, identity: AWSCredentialIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, _AWSCredentialsIdentity):  # pyright: ignore
            raise InvalidInputException(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialIdentity but received {type(identity)}."
            )
        elif identity.is_expired:
            raise InvalidInputException(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )
        elif not identity.access_key_id or not identity.secret_access_key:
            raise InvalidInputException(
                "Both an access key and a secret key are required to presign."
            )

    def _validate_destination(self, *, host: str, path: str) -> None:
        if not host:
            raise InvalidInputException("Host must not be empty.")
        if not _HOST_RE.fullmatch(host):
            raise InvalidInputException(
                "Host must be a bare host name with an optional port, without "
                f"scheme, path, query or user info. Received: {host!r}"
            )
        if not path or not path.startswith("/"):
            raise InvalidInputException(
                f"Path must begin with '/'. Received: {path!r}"
            )

    def _with_defaults(
        self, signing_properties: PresignProperties | None
    ) -> PresignProperties:
        # Create copy of signing properties to avoid mutating the original
        new_signing_properties = PresignProperties(
            region=self._region, service=self._service
        )
        if signing_properties is not None:
            new_signing_properties.update(signing_properties)
        return new_signing_properties

    def _normalize_signing_properties(
        self, *, signing_properties: PresignProperties
    ) -> PresignProperties:
        new_signing_properties = PresignProperties(**signing_properties)
        for name in ("region", "service"):
            if not new_signing_properties.get(name):
                raise MissingExpectedParameterException(
                    f"A non-empty {name} is required in signing_properties."
                )

        if "date" not in new_signing_properties:
            date_obj = ensure_utc(self._clock())
            new_signing_properties["date"] = date_obj.strftime(SIGV4_TIMESTAMP_FORMAT)
        else:
            self._validate_date(new_signing_properties["date"])

        expires = new_signing_properties.setdefault("expires", self._default_expires)
        # bool is an int subclass but never a meaningful expiry.
        if isinstance(expires, bool) or not isinstance(expires, int):
            raise InvalidInputException(
                f"Expiry must be an integer number of seconds. Received: {expires!r}"
            )
        if not 0 < expires <= MAX_EXPIRES:
            raise InvalidInputException(
                f"Expiry must be between 1 and {MAX_EXPIRES} seconds. "
                f"Received: {expires}"
            )
        return new_signing_properties

    def _validate_date(self, date: str) -> None:
        if not _TIMESTAMP_RE.match(date):
            raise InvalidInputException(
                f"Signing date must use the {SIGV4_TIMESTAMP_FORMAT} format. "
                f"Received: {date!r}"
            )
        try:
            datetime.datetime.strptime(date, SIGV4_TIMESTAMP_FORMAT)
        except ValueError as e:
            raise InvalidInputException(
                f"Signing date is not a valid timestamp: {date!r}"
            ) from e

    def _scope(self, *, signing_properties: PresignProperties) -> str:
        date = signing_properties.get("date")
        if date is None:
            raise MissingExpectedParameterException(
                "Cannot generate a credential scope without a valid date "
                f"in your signing_properties. Current value: {date}"
            )
        formatted_date = date[0:8]
        region = signing_properties["region"]
        service = signing_properties["service"]
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{formatted_date}/{region}/{service}/{SIGV4_TERMINATOR}"

    def _format_canonical_path(
        self, *, path: str, signing_properties: PresignProperties
    ) -> str:
        if signing_properties.get("uri_encode_path", False):
            return uri_escape(path)
        return path

    def _format_canonical_headers(self, *, host: str) -> str:
        return f"{SIGNED_HEADERS}:{host}"

    def _format_canonical_request(
        self, *, canonical_path: str, canonical_query: str, canonical_headers: str
    ) -> str:
        return (
            f"{self._method}\n"
            f"{canonical_path}\n"
            f"{canonical_query}\n"
            f"{canonical_headers}\n"
            "\n"
            f"{SIGNED_HEADERS}\n"
            f"{UNSIGNED_PAYLOAD}"
        )


def get_s3_presigned_url(
    bucket: str,
    object_path: str,
    access_key: str,
    secret_key: str,
    host: str,
    expiry_seconds: int = DEFAULT_EXPIRES,
    *,
    region: str = DEFAULT_REGION,
    service: str = DEFAULT_SERVICE,
    clock: Callable[[], datetime.datetime] | None = None,
    tracer: SigningTracer | None = None,
) -> str:
    """Build a presigned URL to GET one object from an S3-compatible store.

    :param bucket: Bucket name with no slashes, for example ``rlosde``.
    :param object_path: Object path including slashes, for example
        ``/myparentfolder/mychildfolder/myobject.obj`` or ``/myfile.jpg``.
    :param access_key: Access key ID.
    :param secret_key: Secret access key.
    :param host: FQDN of the object store, for example ``nrs.objectstore.gov.bc.ca``.
    :param expiry_seconds: Seconds until the URL expires. Defaults to one hour.
    :param region: Region for the credential scope.
    :param service: Service identifier for the credential scope.
    :param clock: Optional replacement for the system clock.
    :param tracer: Optional sink for intermediate signing values.
    """
    presigner = SigV4QueryPresigner(
        region=region, service=service, clock=clock, tracer=tracer
    )
    identity = AWSCredentialIdentity(
        access_key_id=access_key, secret_access_key=secret_key
    )
    return presigner.presign_object(
        bucket=bucket,
        object_path=object_path,
        host=host,
        identity=identity,
        expires=expiry_seconds,
    )
