"""
Shared fixtures: a small two-category, three-year snapshot and a fake
text-generation callable. No network access is required by any test.
"""
import pytest

from gva.dataset import build_snapshot
from gva.insights import InsightRequest


SMALL_HEADERS = [("2077/78", "2020/21"), ("2078/79 R", "2021/22"), ("2079/80 P", "2022/23")]
SMALL_ROWS = [
    {"code": "A", "name": "Agriculture", "values": [100, "1,250", None]},
    {"code": "B", "name": "Mining and quarrying", "values": [10, 20, 30]},
]


@pytest.fixture
def small_snapshot():
    return build_snapshot(SMALL_HEADERS, SMALL_ROWS)


class FakeGenerator:
    def __init__(self, summary="Agriculture grew steadily.", error=None):
        self.summary = summary
        self.error = error
        self.requests = []

    def __call__(self, request: InsightRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.summary


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def make_generator():
    return FakeGenerator
