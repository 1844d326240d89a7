"""Shared fixtures: a fake text-generation provider so no test touches the network."""
import asyncio

import pytest

from generation.providers import TextGenerationProvider


class FakeProvider(TextGenerationProvider):
    """Returns a canned response (or raises) and records every call."""

    def __init__(self, response=None, error=None, delay=0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate(self, prompt, params):
        self.calls.append((prompt, params))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.response

    def get_provider_name(self):
        return "fake"


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def words():
    """Build filler text of an exact word count."""
    def _words(count, word="word"):
        return " ".join([word] * count)
    return _words
