from zope.interface import Attribute
from zope.interface import Interface


class IS3Client(Interface):
    """Abstraction over S3-compatible object storage."""

    region_name = Attribute("Region the client handle is bound to, or None.")

    def get_object(**params):
        """Fetch an object; returns the backend response (with ``Body``)."""

    def put_object(**params):
        """Store an object; returns the backend response."""

    def delete_object(**params):
        """Delete an object; returns the backend response."""

    def head_object(**params):
        """Return the object's headers as a dict."""

    def copy_object(**params):
        """Server-side copy; returns the backend response."""

    def list_objects(bucket_name, prefix=""):
        """Yield every key in the bucket matching the prefix."""

    def does_object_exist(bucket_name, key):
        """Return True if the object exists."""

    def does_bucket_exist(bucket_name):
        """Return True if the bucket exists."""

    def create_bucket(bucket_name, region_name=None):
        """Create the bucket, constrained to the region when given."""

    def for_region(region_name):
        """Return a client handle bound to the region.

        The handle this is called on is left untouched.
        """


class IAdapter(Interface):
    """Key-value filesystem backend."""

    def read(key):
        """Return the content stored under key."""

    def write(key, content):
        """Store content under key."""

    def exists(key):
        """Return True if key exists."""

    def keys():
        """Return a sorted list of all keys, directories included."""

    def mtime(key):
        """Return the last modification time of key."""

    def delete(key):
        """Remove key."""

    def rename(source_key, target_key):
        """Move source_key to target_key."""

    def is_directory(key):
        """Return True if key denotes a directory."""


class IMetadataSupporter(Interface):
    """Backend that can attach metadata to keys."""

    def set_metadata(key, metadata):
        """Associate metadata with key."""

    def get_metadata(key):
        """Return the metadata associated with key, or an empty dict."""


class IListKeysAware(Interface):
    """Backend that can list keys by prefix."""

    def list_keys(prefix=""):
        """Return the keys starting with prefix."""
