"""Shared test fixtures"""
import base64
import io
import json
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from civic_guard.config import Settings
from civic_guard.domain.store import IssueStore
from civic_guard.infrastructure.locations import LocationCatalog
from civic_guard.infrastructure.locations.catalog import DEFAULT_LOCATIONS_PATH
from civic_guard.seed_data import build_demo_state, empty_state


def completion(content: str) -> Any:
    """Shape of an OpenAI chat completion, enough for the client helpers"""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def fake_openai(*replies) -> Mock:
    """
    Mock AsyncOpenAI whose chat completions return the given replies in order.
    dict replies are sent as JSON, exceptions are raised.
    """
    side_effect = []
    for reply in replies:
        if isinstance(reply, BaseException):
            side_effect.append(reply)
        elif isinstance(reply, dict):
            side_effect.append(completion(json.dumps(reply)))
        else:
            side_effect.append(completion(reply))
    client = Mock()
    client.chat.completions.create = AsyncMock(side_effect=side_effect)
    return client


def jpeg_data_uri(color=(90, 90, 90), size=(64, 48)) -> str:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG")
    return "data:image/jpeg;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


SUMMARY_REPLY = {
    "reporterDetails": "Not provided",
    "issueDescription": "A large pothole on Main St is damaging vehicles.",
    "district": "Coimbatore",
    "panchayat": "Kinathukadavu",
    "village": "Arasampalayam",
    "street": "Main St",
    "locationDetails": "Near the bus stop",
    "dateTime": "Not specified",
    "affectedPeopleCommunity": "Daily commuters",
    "urgencyLevel": "Medium",
    "finalSummaryRecommendation": "Repair the pothole on Main St before the monsoon.",
}


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        openai_api_key="",
        seed_demo_data=True,
        video_max_seconds=30.0,
        fallback_gps_timeout_seconds=0.2,
        photo_gps_timeout_seconds=0.2,
    )


@pytest.fixture
def catalog():
    return LocationCatalog.from_file(DEFAULT_LOCATIONS_PATH)


@pytest.fixture
def demo_state():
    return build_demo_state()


@pytest.fixture
def store(demo_state):
    return IssueStore(demo_state, "leader@civic.com")


@pytest.fixture
def empty_store():
    return IssueStore(empty_state(), "leader@civic.com")
