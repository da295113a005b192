from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from app.config import settings
from app.services.s3 import S3Service


@mock_aws
def test_presign_put(s3_client):
    svc = S3Service(client=s3_client)

    url = svc.presign_put("governance/report-abc.pdf", "application/pdf")

    assert "governance/report-abc.pdf" in url
    assert settings.SPACES_BUCKET in url
    assert "Signature" in url


@mock_aws
def test_head_existing_object(s3_client):
    s3_client.put_object(
        Bucket=settings.SPACES_BUCKET, Key="token/abc/image.png", Body=b"12345", ContentType="image/png"
    )
    svc = S3Service(client=s3_client)

    head = svc.head("token/abc/image.png")

    assert head["ContentLength"] == 5
    assert head["ContentType"] == "image/png"


@mock_aws
def test_head_missing_object_returns_none(s3_client):
    svc = S3Service(client=s3_client)
    assert svc.head("governance/missing.pdf") is None


def test_head_propagates_other_errors():
    client = MagicMock()
    client.head_object.side_effect = ClientError({"Error": {"Code": "403"}}, "HeadObject")
    svc = S3Service(client=client)

    with pytest.raises(ClientError):
        svc.head("governance/secret.pdf")


def test_put_sends_public_object():
    client = MagicMock()
    svc = S3Service(client=client)

    svc.put("token/abc/uri.json", "{}", "application/json", cache_control="public, max-age=60")

    client.put_object.assert_called_once_with(
        Bucket=settings.SPACES_BUCKET,
        Key="token/abc/uri.json",
        Body="{}",
        ContentType="application/json",
        ACL="public-read",
        CacheControl="public, max-age=60",
    )


def test_set_acl():
    client = MagicMock()
    svc = S3Service(client=client)

    svc.set_acl("governance/a.pdf")

    client.put_object_acl.assert_called_once_with(
        Bucket=settings.SPACES_BUCKET, Key="governance/a.pdf", ACL="public-read"
    )
