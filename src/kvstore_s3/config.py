import io
import os
import ZConfig


_SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schema.xml")
_schema = None


def _get_schema():
    global _schema
    if _schema is None:
        with open(_SCHEMA_PATH) as f:
            _schema = ZConfig.loadSchemaFile(f)
    return _schema


class S3AdapterFactory:
    """ZConfig factory for S3Adapter."""

    def __init__(self, config):
        self.name = config.getSectionName()
        self.config = config

    def open(self):
        from kvstore_s3.adapter import S3Adapter
        from kvstore_s3.s3client import S3Client

        config = self.config

        s3_client = S3Client(
            region_name=config.region,
            endpoint_url=config.s3_endpoint_url,
            aws_access_key_id=config.s3_access_key,
            aws_secret_access_key=config.s3_secret_key,
            use_ssl=config.s3_use_ssl,
            addressing_style=config.s3_addressing_style,
            connect_timeout=config.s3_connect_timeout,
            read_timeout=config.s3_read_timeout,
        )
        options = {
            "directory": config.directory or "",
            "create": config.create,
            "region": config.region or "",
            "acl": config.acl or "",
        }
        return S3Adapter(s3_client, config.bucket_name, options)


def adapterFromString(s):
    """Open the adapter described by a configuration string."""
    return adapterFromFile(io.StringIO(s))


def adapterFromFile(f):
    """Open the adapter described by a configuration file object or path."""
    if isinstance(f, (str, os.PathLike)):
        with open(f) as fp:
            return adapterFromFile(fp)
    config, _handler = ZConfig.loadConfigFile(_get_schema(), f)
    return config.adapter.open()
