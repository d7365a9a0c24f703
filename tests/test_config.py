import boto3
import pytest
import ZConfig
from moto import mock_aws

from kvstore_s3.adapter import S3Adapter
from kvstore_s3.config import adapterFromFile
from kvstore_s3.config import adapterFromString


@pytest.fixture
def s3_env():
    with mock_aws():
        boto3.client("s3", region_name="us-east-1").create_bucket(Bucket="test-bucket")
        yield


class TestZConfig:
    def test_creates_adapter(self, s3_env):
        adapter = adapterFromString(
            """\
            <s3adapter>
                bucket-name test-bucket
                region us-east-1
            </s3adapter>
            """
        )
        assert isinstance(adapter, S3Adapter)
        assert adapter.bucket == "test-bucket"

    def test_all_options(self, s3_env):
        adapter = adapterFromString(
            """\
            <s3adapter>
                bucket-name test-bucket
                directory uploads
                create true
                region eu-west-1
                acl public-read
                s3-endpoint-url http://localhost:9000
                s3-access-key minioadmin
                s3-secret-key minioadmin
                s3-use-ssl false
                s3-addressing-style path
                s3-connect-timeout 5
                s3-read-timeout 10
            </s3adapter>
            """
        )
        assert adapter.get_directory() == "uploads"
        assert adapter.get_acl() == "public-read"
        assert adapter._options["create"] is True
        assert adapter._options["region"] == "eu-west-1"
        assert adapter._client.region_name == "eu-west-1"
        assert adapter._client._settings == {
            "endpoint_url": "http://localhost:9000",
            "aws_access_key_id": "minioadmin",
            "aws_secret_access_key": "minioadmin",
            "use_ssl": False,
            "addressing_style": "path",
            "connect_timeout": 5,
            "read_timeout": 10,
        }

    def test_default_values(self, s3_env):
        adapter = adapterFromString(
            """\
            <s3adapter>
                bucket-name test-bucket
            </s3adapter>
            """
        )
        assert adapter._options == {
            "directory": "",
            "create": False,
            "region": "",
            "acl": "",
        }
        assert adapter._client.region_name is None
        assert adapter._client._settings["use_ssl"] is True
        assert adapter._client._settings["addressing_style"] == "auto"
        assert adapter._client._settings["connect_timeout"] == 60
        assert adapter._client._settings["read_timeout"] == 60

    def test_named_section(self, s3_env):
        adapter = adapterFromString(
            """\
            <s3adapter main>
                bucket-name test-bucket
                region us-east-1
            </s3adapter>
            """
        )
        assert adapter.bucket == "test-bucket"

    def test_bucket_name_required(self, s3_env):
        with pytest.raises(ZConfig.ConfigurationError):
            adapterFromString(
                """\
                <s3adapter>
                    region us-east-1
                </s3adapter>
                """
            )

    def test_from_file(self, s3_env, tmp_path):
        conf = tmp_path / "adapter.conf"
        conf.write_text(
            "<s3adapter>\n  bucket-name test-bucket\n  region us-east-1\n</s3adapter>\n"
        )
        adapter = adapterFromFile(str(conf))
        adapter.write("hello.txt", b"hi")
        assert adapter.read("hello.txt").read() == b"hi"
