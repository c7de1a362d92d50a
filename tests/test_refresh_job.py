"""Behaviour of the weekly insight refresh job with fake collaborators."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from careerpulse.errors import GenerationError, SchemaError, StorageError
from careerpulse.insights.refresh import IndustryResult, InsightRefreshJob
from careerpulse.models import DemandLevel, MarketOutlook
from tests.conftest import FIXED_NOW, FakeDb, FakeGenerator, make_insight_payload


def test_empty_industry_list_does_nothing(clock) -> None:
    db = FakeDb(industries=[])
    generator = FakeGenerator()

    summary = InsightRefreshJob(db, generator, clock=clock).run()

    assert summary.total == 0
    assert summary.all_succeeded
    assert generator.prompts == []
    assert db.updates == {}
    assert summary.payload_industry == "tech-software-development"


def test_empty_industry_list_records_payload_industry(clock) -> None:
    db = FakeDb(industries=[])
    summary = InsightRefreshJob(db, FakeGenerator(), clock=clock).run(
        {"industry": "finance-banking"}
    )
    assert summary.payload_industry == "finance-banking"
    assert db.updates == {}


def test_listing_failure_aborts_run(clock) -> None:
    db = FakeDb(industries=["finance-banking"], fail_list=True)
    generator = FakeGenerator()

    with pytest.raises(StorageError):
        InsightRefreshJob(db, generator, clock=clock).run()

    assert generator.prompts == []
    assert db.updates == {}


def test_unexpected_listing_error_is_wrapped(clock) -> None:
    class BrokenDb(FakeDb):
        def list_industries(self):
            raise ConnectionError("socket closed")

    with pytest.raises(StorageError, match="socket closed"):
        InsightRefreshJob(BrokenDb(), FakeGenerator(), clock=clock).run()


def test_generation_failure_for_one_industry_continues(clock) -> None:
    industries = ["tech-software-development", "finance-banking", "retail-ecommerce"]
    db = FakeDb(industries=industries)
    generator = FakeGenerator(fail_for=["finance-banking"])

    summary = InsightRefreshJob(db, generator, clock=clock).run()

    assert len(generator.prompts) == 3
    assert set(db.updates) == {"tech-software-development", "retail-ecommerce"}
    assert summary.succeeded == 2
    assert summary.failed == 1
    failure = next(r for r in summary.results if not r.ok)
    assert failure.industry == "finance-banking"
    assert failure.error_type == "GenerationError"
    assert "model unavailable" in failure.error


def test_bad_responses_are_recorded_per_industry(clock) -> None:
    bad_demand = json.dumps(make_insight_payload(demand="Extreme"))
    db = FakeDb(industries=["a-one", "b-two", "c-three", "d-four"])
    generator = FakeGenerator(
        responses={
            "a-one": "Sorry, I can't help with that.",
            "b-two": bad_demand,
            "c-three": "null",
        }
    )

    summary = InsightRefreshJob(db, generator, clock=clock).run()

    by_industry = {r.industry: r for r in summary.results}
    assert by_industry["a-one"].error_type == "ParseError"
    assert by_industry["b-two"].error_type == "SchemaError"
    assert "Extreme" in by_industry["b-two"].error
    assert by_industry["c-three"].error_type == "SchemaError"
    assert by_industry["d-four"].ok
    assert list(db.updates) == ["d-four"]


def test_non_finite_growth_rate_is_parse_error(clock) -> None:
    nan_payload = json.dumps(make_insight_payload()).replace("7.5", "NaN")
    db = FakeDb(industries=["finance-banking", "retail-ecommerce"])
    generator = FakeGenerator(responses={"finance-banking": nan_payload})

    summary = InsightRefreshJob(db, generator, clock=clock).run()

    assert summary.succeeded == 1
    assert summary.failed == 1
    assert summary.results[0].error_type == "ParseError"
    assert list(db.updates) == ["retail-ecommerce"]


def test_update_failure_is_recorded(clock) -> None:
    db = FakeDb(
        industries=["tech-software-development", "finance-banking"],
        fail_update_for=["tech-software-development"],
    )
    summary = InsightRefreshJob(db, FakeGenerator(), clock=clock).run()

    assert summary.failed == 1
    assert summary.results[0].error_type == "StorageError"
    assert list(db.updates) == ["finance-banking"]


def test_successful_update_sets_next_update_one_week_later(clock) -> None:
    db = FakeDb(industries=["healthcare-hospitals"])
    InsightRefreshJob(db, FakeGenerator(), clock=clock).run()

    insight = db.updates["healthcare-hospitals"]
    assert insight.last_updated == FIXED_NOW
    assert insight.next_update == FIXED_NOW + timedelta(days=7)
    assert (insight.next_update - insight.last_updated).total_seconds() == 604800


def test_end_to_end_two_industries(clock) -> None:
    db = FakeDb(industries=["tech-software-development", "finance-banking"])
    fenced = "```json\n" + json.dumps(make_insight_payload("High", "Positive")) + "\n```"
    generator = FakeGenerator(default=fenced)

    summary = InsightRefreshJob(db, generator, clock=clock).run()

    assert summary.all_succeeded
    assert summary.succeeded == 2
    for industry in ("tech-software-development", "finance-banking"):
        insight = db.updates[industry]
        assert insight.demand_level is DemandLevel.HIGH
        assert insight.market_outlook is MarketOutlook.POSITIVE
        assert insight.to_wire()["demandLevel"] == "HIGH"
        assert insight.last_updated == FIXED_NOW
        assert insight.next_update == FIXED_NOW + timedelta(days=7)

    # Prompts ask for the human-readable spellings and JSON only.
    assert 'Analyze the current state of the tech-software-development industry' in (
        generator.prompts[0]
    )
    assert '"High" | "Medium" | "Low"' in generator.prompts[0]
    assert "Return ONLY the JSON" in generator.prompts[0]

    data = summary.to_dict()
    assert data["total"] == 2
    assert data["failures"] == []
    assert data["started_at"] == FIXED_NOW.isoformat()


def test_refresh_industry_raises_on_failure(clock) -> None:
    db = FakeDb(industries=["finance-banking"])
    job = InsightRefreshJob(db, FakeGenerator(fail_for=["finance-banking"]), clock=clock)
    with pytest.raises(GenerationError):
        job.refresh_industry("finance-banking")

    job = InsightRefreshJob(
        db,
        FakeGenerator(default=json.dumps(make_insight_payload(outlook="Meh"))),
        clock=clock,
    )
    with pytest.raises(SchemaError, match="Invalid marketOutlook value: Meh"):
        job.refresh_industry("finance-banking")


def test_refresh_industry_without_row_is_storage_error(clock) -> None:
    db = FakeDb(industries=[])
    job = InsightRefreshJob(db, FakeGenerator(), clock=clock)
    with pytest.raises(StorageError):
        job.refresh_industry("space-tourism")
    assert db.updates == {}


def test_industry_result_failure_for_plain_exception() -> None:
    result = IndustryResult.failure("x", KeyError("boom"))
    assert not result.ok
    assert result.error_type == "KeyError"
