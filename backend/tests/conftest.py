import boto3
import pytest
from moto import mock_aws

from app.config import settings
from app.limiter import get_upload_limiter, limiter
from app.main import app
from app.services.rate_limiter import MemoryWindowStore, SlidingWindowLimiter


class FakeClock:
    """Controllable clock returning epoch milliseconds."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def s3_client():
    """Provide a mocked S3 client with a test bucket."""
    with mock_aws():
        client = boto3.client("s3", region_name=settings.SPACES_REGION)
        client.create_bucket(Bucket=settings.SPACES_BUCKET)
        yield client


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upload_limiter(clock):
    """Fresh upload limiter injected into the app for a single test."""
    fresh = SlidingWindowLimiter(MemoryWindowStore(), clock=clock)
    app.dependency_overrides[get_upload_limiter] = lambda: fresh
    yield fresh
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_request_throttle():
    """SlowAPI counters are process-wide; start every test from zero."""
    limiter.reset()
    yield
