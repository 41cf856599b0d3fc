"""Scalar properties and virtual fields (aggregate, description, project boundary)."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from linked_fields.errors import SubmissionValidationError
from linked_fields.logic.collectors.fields import FieldCollector
from linked_fields.logic.linked_field_catalog import LINKED_FIELDS
from linked_fields.models.entities import Organisation, Project, ProjectReport, Site
from linked_fields.models.linked_field import FormQuestion
from linked_fields.models.owners import POLYMORPHIC_TAGS, FormModelType
from linked_fields.models.relations import ProjectPolygon, Tracking, TrackingEntry

pytestmark = pytest.mark.anyio


def _question(key, question_id="q", **kwargs) -> FormQuestion:
    return FormQuestion(id=question_id, linked_field_key=key, **kwargs)


async def _sync(new_collector, model, question, answers):
    return await new_collector().sync_field(model, question, LINKED_FIELDS[question.linked_field_key], answers)


async def test_property_collect_and_sync(persist, new_collector, render, fetch_all):
    organisation = await persist(Organisation(name="Green Roots", currency="USD"))
    question = _question("org-name")

    assert (await render([question], {"organisations": organisation}))["q"] == "Green Roots"

    await _sync(new_collector, organisation, question, {"q": "Green Roots Kenya"})

    (stored,) = await fetch_all(Organisation)
    assert stored.name == "Green Roots Kenya"
    assert organisation.name == "Green Roots Kenya"


async def test_missing_property_answer_keeps_value(persist, new_collector, fetch_all):
    organisation = await persist(Organisation(name="Green Roots"))

    await _sync(new_collector, organisation, _question("org-name"), {})
    await _sync(new_collector, organisation, _question("org-name"), {"q": None})

    assert (await fetch_all(Organisation))[0].name == "Green Roots"


async def test_optional_date_can_be_cleared(persist, new_collector, fetch_all):
    site = await persist(Site(name="North ridge"))
    question = _question("site-start-date", input_type="date", required=False)

    await _sync(new_collector, site, question, {"q": "2024-03-01T00:00:00Z"})
    assert (await fetch_all(Site))[0].start_date == date(2024, 3, 1)

    await _sync(new_collector, site, question, {"q": None})
    assert (await fetch_all(Site))[0].start_date is None


async def test_required_date_is_not_cleared(persist, new_collector, fetch_all):
    site = await persist(Site(name="North ridge", start_date=date(2023, 1, 15)))
    question = _question("site-start-date", input_type="date", required=True)

    await _sync(new_collector, site, question, {"q": None})

    assert (await fetch_all(Site))[0].start_date == date(2023, 1, 15)


async def test_invalid_date_is_rejected(persist, new_collector):
    site = await persist(Site(name="North ridge"))

    with pytest.raises(SubmissionValidationError):
        await _sync(new_collector, site, _question("site-start-date", input_type="date"), {"q": "next spring"})


@pytest.mark.parametrize("parent_answer, expected", [(True, ""), (False, "Community nurseries")])
async def test_landscape_contribution_follows_parent_answer(persist, new_collector, fetch_all, parent_answer, expected):
    report = await persist(ProjectReport(title="Q1"))
    question = _question("pro-rep-landscape-com-con", question_id="q-landscape", parent_id="q-parent")

    await _sync(new_collector, report, question, {"q-parent": parent_answer, "q-landscape": "Community nurseries"})

    assert (await fetch_all(ProjectReport))[0].landscape_community_contribution == expected


async def test_aggregate_round_trip(persist, new_collector, render, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))
    question = _question("pro-full-time-jobs-count")

    assert (await render([question], {"projects": project}))["q"] == 0

    await _sync(new_collector, project, question, {"q": 15})
    assert (await render([question], {"projects": project}))["q"] == 15
    entries = await fetch_all(TrackingEntry)
    assert sorted((e.type, e.subtype, e.amount) for e in entries) == [("age", "unknown", 15), ("gender", "unknown", 15)]

    await _sync(new_collector, project, question, {"q": "20"})
    assert (await render([question], {"projects": project}))["q"] == 20
    assert len(await fetch_all(TrackingEntry)) == 2


@pytest.mark.parametrize("answer", [1.5, True, -3, "many", [4]])
async def test_aggregate_rejects_non_counts(persist, new_collector, answer):
    project = await persist(Project(name="Restoring the ridge"))

    with pytest.raises(SubmissionValidationError):
        await _sync(new_collector, project, _question("pro-full-time-jobs-count"), {"q": answer})


async def test_aggregate_does_not_overwrite_detailed_breakdown(persist, new_collector, render, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))
    await new_collector().sync_relation(
        project,
        LINKED_FIELDS["pro-full-time-jobs"],
        [
            {
                "entries": [
                    {"type": "gender", "subtype": "male", "amount": 10},
                    {"type": "gender", "subtype": "female", "amount": 5},
                ]
            }
        ],
    )
    question = _question("pro-full-time-jobs-count")
    assert (await render([question], {"projects": project}))["q"] == 15

    with pytest.raises(SubmissionValidationError):
        await _sync(new_collector, project, question, {"q": 15})

    entries = await fetch_all(TrackingEntry)
    assert [(e.subtype, e.amount) for e in entries] == [("male", 10), ("female", 5)]


async def test_aggregate_ignores_hidden_tracking(persist, new_collector, render):
    project = await persist(Project(name="Restoring the ridge"))
    await new_collector().sync_relation(
        project,
        LINKED_FIELDS["pro-full-time-jobs"],
        [{"entries": [{"type": "gender", "subtype": "female", "amount": 5}]}],
        hidden=True,
    )

    assert (await render([_question("pro-full-time-jobs-count")], {"projects": project}))["q"] == 0


async def test_aggregate_cleared_with_null(persist, new_collector, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))
    question = _question("pro-full-time-jobs-count")
    await _sync(new_collector, project, question, {"q": 9})

    await _sync(new_collector, project, question, {"q": None})

    (tracking,) = await fetch_all(Tracking)
    assert tracking.deleted_at is not None
    assert await fetch_all(TrackingEntry) == []


async def test_description_shared_by_sibling_trackings(persist, new_collector, render, fetch_all):
    report = await persist(ProjectReport(title="Q1"))
    question = _question("pro-rep-jobs-description")

    await _sync(new_collector, report, question, {"q": "Mostly local hires"})

    trackings = await fetch_all(Tracking)
    assert sorted(t.collection for t in trackings) == ["full-time", "part-time"]
    assert {t.description for t in trackings} == {"Mostly local hires"}
    assert (await render([question], {"projectReports": report}))["q"] == "Mostly local hires"


async def test_description_rejects_non_text(persist, new_collector):
    report = await persist(ProjectReport(title="Q1"))

    with pytest.raises(SubmissionValidationError):
        await _sync(new_collector, report, _question("pro-rep-jobs-description"), {"q": 12})


async def test_project_boundary_is_latest_polygon(persist, new_collector, render):
    project = await persist(Project(name="Restoring the ridge"))
    tag = POLYMORPHIC_TAGS[FormModelType.PROJECTS]
    older = {"type": "Polygon", "coordinates": [[[0, 0], [0, 1], [1, 1], [0, 0]]]}
    newer = {"type": "Polygon", "coordinates": [[[0, 0], [0, 2], [2, 2], [0, 0]]]}
    await persist(
        ProjectPolygon(owner_type=tag, owner_id=project.id, geometry=older, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ProjectPolygon(owner_type=tag, owner_id=project.id, geometry=newer, created_at=datetime(2024, 6, 1, tzinfo=timezone.utc)),
    )
    question = _question("pro-proj-boundary")

    assert (await render([question], {"projects": project}))["q"] == newer

    result = await _sync(new_collector, project, question, {"q": older})
    assert result.warnings == []
    assert (await render([question], {"projects": project}))["q"] == newer


async def test_demographics_loaded_only_for_demographic_virtual_fields(persist, render, monkeypatch):
    project = await persist(Project(name="Restoring the ridge"))
    loads = []
    original = FieldCollector._load_demographics

    async def counting_load(self, session, owners):
        loads.append(owners)
        return await original(self, session, owners)

    monkeypatch.setattr(FieldCollector, "_load_demographics", counting_load)

    boundary_only = await render([_question("pro-proj-boundary")], {"projects": project})
    assert boundary_only == {"q": None}
    assert loads == []

    await render(
        [_question("pro-proj-boundary"), _question("pro-full-time-jobs-count", question_id="q-jobs")],
        {"projects": project},
    )
    assert len(loads) == 1
