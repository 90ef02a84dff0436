from pathlib import Path
from dotenv import load_dotenv
import pytest

from app.utils import redis_cache

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')


# Keep tests off any real Redis; cache tests swap in fakeredis explicitly
@pytest.fixture(autouse=True)
def null_redis(monkeypatch):
    monkeypatch.setattr(redis_cache, "_redis_client", redis_cache._NullRedis())
