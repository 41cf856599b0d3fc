"""Funding types and financial indicators owned by an organisation or a financial report."""

from __future__ import annotations

import pytest

from linked_fields.errors import ConfigurationError
from linked_fields.logic.linked_field_catalog import LINKED_FIELDS
from linked_fields.models.base import utcnow
from linked_fields.models.entities import FinancialReport, Organisation, Site
from linked_fields.models.linked_field import FormQuestion
from linked_fields.models.relations import FinancialIndicator, FundingType

pytestmark = pytest.mark.anyio

ORG_FUNDING = LINKED_FIELDS["org-funding-types"]
REPORT_FUNDING = LINKED_FIELDS["fin-rep-funding-types"]
ORG_INDICATORS = LINKED_FIELDS["org-financial-indicators-financial-collection"]
REPORT_INDICATORS = LINKED_FIELDS["fin-rep-financial-indicators"]


async def _organisation_with_report(persist, **org_settings):
    organisation = await persist(Organisation(name="Green Roots", **org_settings))
    report = await persist(FinancialReport(organisation_id=organisation.id, title="FY2024"))
    return organisation, report


async def test_funding_types_skip_incomplete_records(persist, new_collector, render, fetch_all):
    organisation = await persist(Organisation(name="Green Roots"))

    result = await new_collector().sync_relation(
        organisation,
        ORG_FUNDING,
        [
            {"year": 2023, "type": "grant", "source": "Foundation", "amount": 1000},
            {"year": 2023, "type": "loan", "amount": 500},
            {"year": 2024, "type": "grant"},
        ],
    )

    assert result.warnings == ["funding_type_missing_required_fields"]
    rows = await fetch_all(FundingType)
    assert [(r.year, r.type, r.amount, r.organisation_uuid, r.financial_report_id) for r in rows] == [
        (2023, "grant", 1000, organisation.uuid, None),
        (2023, "loan", 500, organisation.uuid, None),
    ]
    question = FormQuestion(id="q-funding", linked_field_key="org-funding-types")
    collected = (await render([question], {"organisations": organisation}))["q-funding"]
    assert [(r["type"], r["source"]) for r in collected] == [("grant", "Foundation"), ("loan", None)]


async def test_funding_types_match_on_year_type_and_source(persist, new_collector, fetch_all):
    organisation = await persist(Organisation(name="Green Roots"))
    await new_collector().sync_relation(
        organisation,
        ORG_FUNDING,
        [
            {"year": 2023, "type": "grant", "source": "Foundation", "amount": 1000},
            {"year": 2023, "type": "loan", "amount": 500},
        ],
    )
    grant, loan = await fetch_all(FundingType)

    await new_collector().sync_relation(
        organisation, ORG_FUNDING, [{"year": 2023, "type": "grant", "source": "Foundation", "amount": 1500}]
    )

    rows = {row.id: row for row in await fetch_all(FundingType)}
    assert len(rows) == 2
    assert rows[grant.id].amount == 1500
    assert rows[grant.id].deleted_at is None
    assert rows[loan.id].deleted_at is not None


async def test_funding_type_uuid_match_beats_composite_key(persist, new_collector, fetch_all):
    organisation = await persist(Organisation(name="Green Roots"))
    await new_collector().sync_relation(
        organisation,
        ORG_FUNDING,
        [
            {"year": 2023, "type": "grant", "source": "Foundation", "amount": 1000},
            {"year": 2023, "type": "grant", "amount": 200},
        ],
    )
    foundation, anonymous = await fetch_all(FundingType)

    await new_collector().sync_relation(
        organisation,
        ORG_FUNDING,
        [{"uuid": anonymous.uuid, "year": 2023, "type": "grant", "source": "Foundation", "amount": 300}],
    )

    rows = {row.id: row for row in await fetch_all(FundingType)}
    assert len(rows) == 2
    assert (rows[anonymous.id].source, rows[anonymous.id].amount) == ("Foundation", 300)
    assert rows[anonymous.id].deleted_at is None
    assert rows[foundation.id].deleted_at is not None


async def test_funding_type_without_source_does_not_match_sourced_row(persist, new_collector, fetch_all):
    organisation = await persist(Organisation(name="Green Roots"))
    await new_collector().sync_relation(
        organisation, ORG_FUNDING, [{"year": 2023, "type": "grant", "source": "Foundation", "amount": 1000}]
    )
    (sourced,) = await fetch_all(FundingType)

    await new_collector().sync_relation(organisation, ORG_FUNDING, [{"year": 2023, "type": "grant", "amount": 50}])

    old, new = await fetch_all(FundingType)
    assert old.id == sourced.id
    assert (old.source, old.amount, old.deleted_at is not None) == ("Foundation", 1000, True)
    assert (new.source, new.amount, new.deleted_at) == (None, 50, None)


async def test_report_funding_types_stay_separate_from_organisation(persist, new_collector, render):
    organisation, report = await _organisation_with_report(persist)
    await new_collector().sync_relation(organisation, ORG_FUNDING, [{"year": 2023, "type": "grant", "amount": 10}])

    await new_collector().sync_relation(report, REPORT_FUNDING, [{"year": 2024, "type": "equity", "amount": 99}])

    org_answer = await render(
        [FormQuestion(id="q", linked_field_key="org-funding-types")], {"organisations": organisation}
    )
    report_answer = await render(
        [FormQuestion(id="q", linked_field_key="fin-rep-funding-types")], {"financialReports": report}
    )
    assert [r["type"] for r in org_answer["q"]] == ["grant"]
    assert [r["type"] for r in report_answer["q"]] == ["equity"]


async def test_funding_types_empty_submission_clears(persist, new_collector, fetch_all):
    organisation = await persist(Organisation(name="Green Roots"))
    await new_collector().sync_relation(organisation, ORG_FUNDING, [{"year": 2023, "type": "grant", "amount": 10}])

    await new_collector().sync_relation(organisation, ORG_FUNDING, [])

    assert all(row.deleted_at is not None for row in await fetch_all(FundingType))


async def test_funding_types_need_exactly_one_financial_owner(persist, render):
    organisation, report = await _organisation_with_report(persist)
    question = FormQuestion(id="q", linked_field_key="org-funding-types")

    with pytest.raises(ConfigurationError):
        await render([question], {"organisations": organisation, "financialReports": report})


async def test_funding_types_reject_other_owners(persist, new_collector):
    site = await persist(Site(name="North ridge"))

    with pytest.raises(ConfigurationError):
        await new_collector().sync_relation(site, ORG_FUNDING, [{"year": 2023, "type": "grant", "amount": 1}])


async def test_financial_indicators_carry_owner_settings(persist, new_collector, render, fetch_all):
    organisation = await persist(Organisation(name="Green Roots", currency="USD", fin_start_month=1))

    await new_collector().sync_relation(
        organisation,
        ORG_INDICATORS,
        [
            {"collection": "revenue", "year": 2023, "amount": 100.0, "startMonth": 4, "currency": "EUR"},
            {"collection": "expenses", "year": 2023, "amount": 80.0},
        ],
    )

    (stored,) = await fetch_all(Organisation)
    assert (stored.fin_start_month, stored.currency) == (4, "EUR")
    question = FormQuestion(id="q", linked_field_key="org-financial-indicators-financial-collection")
    collected = (await render([question], {"organisations": stored}))["q"]
    assert [(r["collection"], r["amount"], r["startMonth"], r["currency"]) for r in collected] == [
        ("revenue", 100.0, 4, "EUR"),
        ("expenses", 80.0, 4, "EUR"),
    ]
    assert all(row.organisation_id == organisation.id for row in await fetch_all(FinancialIndicator))


async def test_report_indicators_fall_back_to_organisation_settings(persist, new_collector, render, fetch_all):
    organisation, report = await _organisation_with_report(persist, currency="KES", fin_start_month=7)

    await new_collector().sync_relation(report, REPORT_INDICATORS, [{"collection": "revenue", "year": 2024, "amount": 5.0}])

    (row,) = await fetch_all(FinancialIndicator)
    assert (row.organisation_id, row.financial_report_id) == (organisation.id, report.id)
    question = FormQuestion(id="q", linked_field_key="fin-rep-financial-indicators")
    (collected,) = (await render([question], {"financialReports": report}))["q"]
    assert (collected["startMonth"], collected["currency"]) == (7, "KES")


async def test_financial_indicators_match_on_collection_and_year(persist, new_collector, fetch_all):
    organisation = await persist(Organisation(name="Green Roots"))
    await new_collector().sync_relation(organisation, ORG_INDICATORS, [{"collection": "revenue", "year": 2023, "amount": 1.0}])
    (before,) = await fetch_all(FinancialIndicator)

    await new_collector().sync_relation(
        organisation, ORG_INDICATORS, [{"collection": "revenue", "year": 2023, "amount": 2.0, "description": "audited"}]
    )

    (after,) = await fetch_all(FinancialIndicator)
    assert after.id == before.id
    assert (after.amount, after.description) == (2.0, "audited")


async def test_clearing_funding_types_hard_deletes_one_owner_scope(persist, new_collector, fetch_all):
    organisation, report = await _organisation_with_report(persist)
    await persist(
        FundingType(organisation_uuid=organisation.uuid, year=2022, type="grant", amount=1),
        FundingType(organisation_uuid=organisation.uuid, year=2021, type="loan", amount=2, deleted_at=utcnow()),
        FundingType(organisation_uuid=organisation.uuid, financial_report_id=report.id, year=2024, type="equity", amount=3),
    )

    await new_collector().clear_relations(organisation, ORG_FUNDING)

    (remaining,) = await fetch_all(FundingType)
    assert (remaining.financial_report_id, remaining.type, remaining.deleted_at) == (report.id, "equity", None)

    await new_collector().clear_relations(report, REPORT_FUNDING)

    assert await fetch_all(FundingType) == []


async def test_clearing_financial_indicators_hard_deletes_one_owner_scope(persist, new_collector, fetch_all):
    organisation, report = await _organisation_with_report(persist)
    await persist(
        FinancialIndicator(organisation_id=organisation.id, collection="revenue", year=2023, amount=1.0),
        FinancialIndicator(
            organisation_id=organisation.id, collection="expenses", year=2023, amount=2.0, deleted_at=utcnow()
        ),
        FinancialIndicator(
            organisation_id=organisation.id, financial_report_id=report.id, collection="revenue", year=2024, amount=3.0
        ),
        FinancialIndicator(
            organisation_id=organisation.id,
            financial_report_id=report.id,
            collection="expenses",
            year=2024,
            amount=4.0,
            deleted_at=utcnow(),
        ),
    )

    await new_collector().clear_relations(report, REPORT_INDICATORS)

    (remaining,) = await fetch_all(FinancialIndicator)
    assert (remaining.financial_report_id, remaining.collection, remaining.amount) == (None, "revenue", 1.0)

    await new_collector().clear_relations(organisation, ORG_INDICATORS)

    assert await fetch_all(FinancialIndicator) == []


async def test_questions_sharing_funding_types_all_receive_the_list(persist, new_collector, render):
    organisation = await persist(Organisation(name="Green Roots"))
    await new_collector().sync_relation(organisation, ORG_FUNDING, [{"year": 2023, "type": "grant", "amount": 10}])
    questions = [
        FormQuestion(id="q-funding", linked_field_key="org-funding-types"),
        FormQuestion(id="q-funding-summary", linked_field_key="org-funding-types"),
    ]

    answers = await render(questions, {"organisations": organisation})

    assert [r["type"] for r in answers["q-funding"]] == ["grant"]
    assert answers["q-funding"] == answers["q-funding-summary"]
