from io import BytesIO
from types import SimpleNamespace

import pytest
from PIL import Image


def image_bytes(width, height, color=(0, 0, 0), fmt="JPEG", mode="RGB", **save_kwargs):
    img = Image.new(mode, (width, height), color)
    buf = BytesIO()
    img.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


def open_bytes(data):
    img = Image.open(BytesIO(data))
    img.load()
    return img


class UpstreamError(Exception):
    """Stands in for an SDK error carrying an HTTP status code."""

    def __init__(self, code, message="upstream error"):
        super().__init__(f"{code} {message}")
        self.code = code


class FakeModels:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return SimpleNamespace(text=outcome)


class FakeClient:
    """Minimal google.genai.Client look-alike: client.models.generate_content(...)."""

    def __init__(self, *outcomes):
        self.models = FakeModels(outcomes)

    @property
    def calls(self):
        return self.models.calls


@pytest.fixture
def make_image():
    return image_bytes


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def record_sleep(sleeps):
    return sleeps.append
