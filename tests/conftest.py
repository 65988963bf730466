"""Shared fakes for the browser session and the vision oracle."""

import io
import json
from contextlib import asynccontextmanager

import pytest
from PIL import Image

from pagelens.config import Settings
from pagelens.errors import CaptureError
from pagelens.models import PageDimensions


def png_bytes(width=40, height=30, color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


class FakeSession:
    """Stands in for BrowserSession; records every call."""

    def __init__(self, nav_failures=0, desktop_failures=0, mobile_failures=0,
                 fail_clips=False, clip_failures=0, dims=PageDimensions(1200, 2000),
                 fail_dims=False, fail_title=False):
        self.nav_failures = nav_failures
        self.desktop_failures = desktop_failures
        self.mobile_failures = mobile_failures
        self.fail_clips = fail_clips
        self.clip_failures = clip_failures
        self.dims = dims
        self.fail_dims = fail_dims
        self.fail_title = fail_title
        self.calls = []
        self.closed = False
        self.mobile = False

    async def navigate(self, url, wait_until, timeout):
        self.calls.append(("navigate", url, wait_until, timeout))
        if self.nav_failures > 0:
            self.nav_failures -= 1
            raise TimeoutError("Timeout 20000ms exceeded")

    async def set_viewport(self, width, height, is_mobile=False, has_touch=False):
        self.calls.append(("viewport", width, height, is_mobile, has_touch))
        self.mobile = is_mobile

    async def screenshot(self, full_page=False, clip=None):
        if clip is not None:
            self.calls.append(("clip", clip))
            if self.fail_clips:
                raise CaptureError("clip failed")
            if self.clip_failures > 0:
                self.clip_failures -= 1
                raise CaptureError("clip failed")
            return b"clip-" + str(clip.y).encode()
        if self.mobile:
            self.calls.append(("mobile-shot", full_page))
            if self.mobile_failures > 0:
                self.mobile_failures -= 1
                raise CaptureError("mobile failed")
            return b"mobile-png"
        self.calls.append(("desktop-shot", full_page))
        if self.desktop_failures > 0:
            self.desktop_failures -= 1
            raise CaptureError("desktop failed")
        return b"desktop-png"

    async def page_dimensions(self):
        self.calls.append(("dims",))
        if self.fail_dims:
            raise RuntimeError("evaluate failed")
        return self.dims

    async def title(self):
        if self.fail_title:
            raise RuntimeError("Execution context was destroyed")
        return "Example Domain"

    async def settle(self, seconds):
        self.calls.append(("settle", seconds))

    async def close(self):
        self.closed = True

    def named(self, name):
        return [c for c in self.calls if c[0] == name]


SECTIONS_REPLY = """Here are the sections I found:

```json
[
  {"type": "Navigation", "coordinates": {"top": 0, "right": 100, "bottom": 5, "left": 0}, "description": "Top bar"},
  {"type": "Hero Section", "coordinates": {"top": 5, "right": 100, "bottom": 30, "left": 0}, "description": "Headline"},
  {"type": "Hero Section", "coordinates": {"top": 8, "right": 100, "bottom": 31, "left": 0}, "description": "Same hero"},
  {"type": "Testimonials", "coordinates": {"top": 30, "right": 100, "bottom": 60, "left": 0}, "description": "Quotes"},
  {"type": "Footer", "coordinates": {"top": 90, "right": 100, "bottom": 100, "left": 0}, "description": "Links"}
]
```"""


ANALYSIS_REPLY = json.dumps({
    "whatWeFound": ["Clear headline", "Single CTA"],
    "whatsWorking": ["Strong contrast"],
    "improvements": ["Add social proof"],
    "pulledQuote": "Ship faster with less code",
    "buyerInsight": "A buyer immediately understands the offer.",
})


class FakeOracle:
    """Answers segmentation and analysis instructions with canned text."""

    def __init__(self, segment_reply=SECTIONS_REPLY, analysis_reply=ANALYSIS_REPLY,
                 fail_segment=False, fail_analysis=False):
        self.segment_reply = segment_reply
        self.analysis_reply = analysis_reply
        self.fail_segment = fail_segment
        self.fail_analysis = fail_analysis
        self.calls = []

    @staticmethod
    def is_segment(instruction):
        return instruction.startswith("Split this full-page")

    async def complete(self, instruction, image):
        self.calls.append((instruction, image))
        if self.is_segment(instruction):
            if self.fail_segment:
                raise ConnectionError("oracle unreachable")
            return self.segment_reply
        if self.fail_analysis:
            raise ConnectionError("oracle unreachable")
        return self.analysis_reply

    @property
    def analysis_calls(self):
        return [c for c in self.calls if not self.is_segment(c[0])]


def make_open_browser(session):
    @asynccontextmanager
    async def _open(settings):
        try:
            yield session
        finally:
            await session.close()
    return _open


@pytest.fixture
def settings():
    return Settings(
        anthropic_api_key="test-key",
        navigation_retry_delay=0,
        capture_backoff_unit=0,
        oracle_backoff_unit=0,
        mobile_settle_delay=0,
    )


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def oracle():
    return FakeOracle()
