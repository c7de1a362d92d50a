"""Shared fakes and fixtures for the insight refresh tests."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone

import pytest

# Keep log files and the default database out of the real home directory.
os.environ.setdefault("CAREERPULSE_HOME", tempfile.mkdtemp(prefix="careerpulse-test-"))

from careerpulse.errors import StorageError  # noqa: E402


FIXED_NOW = datetime(2026, 10, 11, 0, 0, tzinfo=timezone.utc)


def make_insight_payload(demand="High", outlook="Positive") -> dict:
    return {
        "salaryRanges": [
            {
                "role": f"Role {i}",
                "min": 60000 + i * 1000,
                "max": 120000 + i * 1000,
                "median": 90000 + i * 1000,
                "location": "Remote",
            }
            for i in range(5)
        ],
        "growthRate": 7.5,
        "demandLevel": demand,
        "topSkills": ["Python", "SQL", "Cloud", "Docker", "Kubernetes"],
        "marketOutlook": outlook,
        "keyTrends": ["AI adoption", "Remote work", "Automation", "Security", "Data"],
        "recommendedSkills": ["MLOps", "Rust", "Terraform", "dbt", "Go"],
    }


class FakeGenerator:
    """Returns canned responses per industry and records every prompt."""

    model = "fake-model"

    def __init__(self, responses=None, default=None, fail_for=()):
        self.responses = dict(responses or {})
        self.default = default if default is not None else json.dumps(
            make_insight_payload()
        )
        self.fail_for = set(fail_for)
        self.prompts = []

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for industry in self.fail_for:
            if industry in prompt:
                raise RuntimeError(f"model unavailable for {industry}")
        for industry, text in self.responses.items():
            if industry in prompt:
                return text
        return self.default


class FakeDb:
    """In-memory stand-in for the storage managers."""

    def __init__(self, industries=(), fail_list=False, fail_update_for=()):
        self.industries = list(industries)
        self.fail_list = fail_list
        self.fail_update_for = set(fail_update_for)
        self.list_calls = 0
        self.updates = {}

    def list_industries(self):
        self.list_calls += 1
        if self.fail_list:
            raise StorageError("connection refused")
        return list(self.industries)

    def update_insight(self, insight) -> None:
        if insight.industry in self.fail_update_for:
            raise StorageError(f"write failed for {insight.industry}")
        if insight.industry not in self.industries:
            raise StorageError(f"No insight row for industry {insight.industry}")
        self.updates[insight.industry] = insight

    def close(self) -> None:
        return None


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def insight_json() -> str:
    return json.dumps(make_insight_payload())
