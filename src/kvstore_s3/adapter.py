from kvstore_s3.interfaces import IAdapter
from kvstore_s3.interfaces import IListKeysAware
from kvstore_s3.interfaces import IMetadataSupporter
from zope.interface import implementer

import logging
import posixpath
import threading


logger = logging.getLogger(__name__)

DEFAULT_OPTIONS = {"directory": "", "create": False, "region": "", "acl": ""}


class BucketNotFoundError(RuntimeError):
    """The configured bucket is missing and may not be created."""

    def __init__(self, bucket):
        super().__init__(f'The configured bucket "{bucket}" does not exist.')
        self.bucket = bucket


class OrphanedCopyError(RuntimeError):
    """A rename copied the object but could not delete the source.

    Both objects are left in place. ``response`` is the copy response.
    """

    def __init__(self, source_key, target_key, response):
        super().__init__(
            f"Renamed {source_key!r} to {target_key!r} but the source could "
            "not be deleted"
        )
        self.source_key = source_key
        self.target_key = target_key
        self.response = response


@implementer(IAdapter, IMetadataSupporter, IListKeysAware)
class S3Adapter:
    """Key-value filesystem adapter on top of an S3 bucket.

    Keys are mapped to object keys below the configured directory.
    Metadata set per key is kept in memory only and forwarded as request
    parameters of every call touching that key; the client drops entries
    an operation does not define.

    The metadata table is keyed by computed path: changing the directory
    makes entries stored before the change unreachable.

    Options are merged over ``DEFAULT_OPTIONS``; extra keys are kept and
    ignored.
    """

    def __init__(self, client, bucket, options=None, metadata=None):
        self._client = client
        self.bucket = bucket
        self._options = {**DEFAULT_OPTIONS, **(options or {})}
        self._metadata = {} if metadata is None else metadata
        self._metadata_lock = threading.Lock()
        self._bucket_ensured = False
        self._ensure_lock = threading.Lock()

    def __repr__(self):
        return f"<S3Adapter bucket={self.bucket!r} directory={self.get_directory()!r}>"

    # -- Configuration --

    def set_acl(self, acl):
        """Set the ACL used when writing files."""
        self._options["acl"] = acl

    def get_acl(self):
        return self._options["acl"]

    def set_directory(self, directory):
        """Set the base directory all keys are resolved against."""
        self._options["directory"] = directory

    def get_directory(self):
        return self._options["directory"]

    # -- Metadata --

    def set_metadata(self, key, metadata):
        path = self._compute_path(key)
        with self._metadata_lock:
            self._metadata[path] = dict(metadata)

    def get_metadata(self, key):
        path = self._compute_path(key)
        with self._metadata_lock:
            return dict(self._metadata.get(path) or {})

    # -- Data operations --

    def read(self, key):
        self._ensure_bucket_exists()
        params = {"Bucket": self.bucket, "Key": self._compute_path(key)}
        params.update(self.get_metadata(key))
        response = self._client.get_object(**params)
        return response["Body"]

    def write(self, key, content):
        self._ensure_bucket_exists()
        params = {}
        if self._options["acl"]:
            params["ACL"] = self._options["acl"]
        params.update(self.get_metadata(key))
        params["Body"] = content
        params["Bucket"] = self.bucket
        params["Key"] = self._compute_path(key)
        return self._client.put_object(**params)

    def rename(self, source_key, target_key):
        self._ensure_bucket_exists()
        params = {
            "Bucket": self.bucket,
            "CopySource": f"{self.bucket}/{self._compute_path(source_key)}",
            "Key": self._compute_path(target_key),
        }
        params.update(self.get_metadata(source_key))
        response = self._client.copy_object(**params)
        try:
            self.delete(source_key)
        except Exception as e:
            logger.warning(
                "Copied %s to %s but failed to delete the source",
                source_key,
                target_key,
                exc_info=True,
            )
            raise OrphanedCopyError(source_key, target_key, response) from e
        return response

    def exists(self, key):
        self._ensure_bucket_exists()
        return self._client.does_object_exist(self.bucket, self._compute_path(key))

    def mtime(self, key):
        """Return the object's LastModified, or False if the header is absent."""
        self._ensure_bucket_exists()
        params = {"Bucket": self.bucket, "Key": self._compute_path(key)}
        params.update(self.get_metadata(key))
        response = self._client.head_object(**params)
        return response.get("LastModified") or False

    def keys(self):
        """Return every key in the bucket plus the directories they live in.

        The listing covers the whole bucket, regardless of the directory.
        """
        self._ensure_bucket_exists()
        keys = set()
        for name in self._client.list_objects(self.bucket):
            parent = posixpath.dirname(name.rstrip("/"))
            if parent:
                keys.add(parent)
            keys.add(name)
        return sorted(keys)

    def list_keys(self, prefix=""):
        raise NotImplementedError("S3Adapter.list_keys is not implemented")

    def delete(self, key):
        self._ensure_bucket_exists()
        params = {"Bucket": self.bucket, "Key": self._compute_path(key)}
        params.update(self.get_metadata(key))
        return self._client.delete_object(**params)

    def is_directory(self, key):
        return self.exists(f"{key}/")

    # -- Helpers --

    def _ensure_bucket_exists(self):
        """Check (and optionally create) the bucket, once per instance.

        :raises BucketNotFoundError: if the bucket is missing and the
            ``create`` option is off
        """
        if self._bucket_ensured:
            return
        with self._ensure_lock:
            if self._bucket_ensured:
                return

            region = self._options["region"]
            if region:
                self._client = self._client.for_region(region)

            if self._client.does_bucket_exist(self.bucket):
                logger.debug("Bucket %s exists", self.bucket)
                self._bucket_ensured = True
                return

            if not self._options["create"]:
                raise BucketNotFoundError(self.bucket)

            self._client.create_bucket(self.bucket, region_name=region or None)
            self._bucket_ensured = True

    def _compute_path(self, key):
        directory = self.get_directory()
        if not directory:
            return key
        return f"{directory}/{key}"
