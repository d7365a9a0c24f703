from botocore import xform_name
from botocore.config import Config
from botocore.exceptions import ClientError
from kvstore_s3.interfaces import IS3Client
from zope.interface import implementer

import boto3
import logging


logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NoSuchBucket", "NotFound"})

# S3 rejects an explicit LocationConstraint for the default region
_DEFAULT_REGION = "us-east-1"


def _is_not_found(error):
    return error.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


@implementer(IS3Client)
class S3Client:
    """Thin boto3 wrapper for S3-compatible object storage.

    Each instance owns its boto3 client. Changing region never mutates an
    existing handle: ``for_region`` builds a new one from the same settings.
    """

    def __init__(
        self,
        region_name=None,
        endpoint_url=None,
        aws_access_key_id=None,
        aws_secret_access_key=None,
        use_ssl=True,
        addressing_style="auto",
        connect_timeout=60,
        read_timeout=60,
    ):
        self.region_name = region_name or None
        self._settings = {
            "endpoint_url": endpoint_url,
            "aws_access_key_id": aws_access_key_id,
            "aws_secret_access_key": aws_secret_access_key,
            "use_ssl": use_ssl,
            "addressing_style": addressing_style,
            "connect_timeout": connect_timeout,
            "read_timeout": read_timeout,
        }

        config = Config(
            s3={"addressing_style": addressing_style},
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )

        kwargs = {"config": config}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if self.region_name:
            kwargs["region_name"] = self.region_name
        if aws_access_key_id:
            kwargs["aws_access_key_id"] = aws_access_key_id
        if aws_secret_access_key:
            kwargs["aws_secret_access_key"] = aws_secret_access_key
        kwargs["use_ssl"] = use_ssl
        if not use_ssl:
            logger.warning(
                "S3 SSL is disabled, data and credentials are transmitted in cleartext"
            )

        self._client = boto3.client("s3", **kwargs)

    def __repr__(self):
        return f"<S3Client region={self.region_name!r}>"

    def for_region(self, region_name):
        if (region_name or None) == self.region_name:
            return self
        logger.debug(
            "Creating S3 client for region %s (was %s)", region_name, self.region_name
        )
        return S3Client(region_name=region_name, **self._settings)

    def _call(self, operation_name, params):
        """Invoke an S3 operation with the parameters its model accepts.

        Entries the operation does not define (``ContentType`` on a GET,
        for instance) are dropped rather than rejected by botocore.
        """
        model = self._client.meta.service_model.operation_model(operation_name)
        members = model.input_shape.members
        accepted = {k: v for k, v in params.items() if k in members}
        if len(accepted) != len(params):
            logger.debug(
                "Dropping parameters not accepted by %s: %s",
                operation_name,
                ", ".join(sorted(set(params) - set(accepted))),
            )
        return getattr(self._client, xform_name(operation_name))(**accepted)

    def get_object(self, **params):
        return self._call("GetObject", params)

    def put_object(self, **params):
        return self._call("PutObject", params)

    def delete_object(self, **params):
        return self._call("DeleteObject", params)

    def head_object(self, **params):
        return self._call("HeadObject", params)

    def copy_object(self, **params):
        return self._call("CopyObject", params)

    def list_objects(self, bucket_name, prefix=""):
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket_name, Prefix=prefix):
            for obj in page.get("Contents", []):
                yield obj["Key"]

    def does_object_exist(self, bucket_name, key):
        try:
            self._client.head_object(Bucket=bucket_name, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise
        return True

    def does_bucket_exist(self, bucket_name):
        try:
            self._client.head_bucket(Bucket=bucket_name)
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise
        return True

    def create_bucket(self, bucket_name, region_name=None):
        kwargs = {"Bucket": bucket_name}
        if region_name and region_name != _DEFAULT_REGION:
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region_name}
        logger.debug("Creating bucket %s in region %s", bucket_name, region_name)
        return self._client.create_bucket(**kwargs)
