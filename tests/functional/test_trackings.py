"""Demographics and restoration trackings: one parent per scope, typed entries beneath."""

from __future__ import annotations

import pytest

from linked_fields.errors import ConfigurationError, SubmissionValidationError
from linked_fields.logic.collectors.trackings import kebab_case, tracking_scope
from linked_fields.logic.linked_field_catalog import LINKED_FIELDS
from linked_fields.models.entities import Project, ProjectReport
from linked_fields.models.linked_field import FormQuestion, LinkedFieldConfig, RelationResource, ResourceKind
from linked_fields.models.owners import FormModelType
from linked_fields.models.relations import Tracking, TrackingEntry

pytestmark = pytest.mark.anyio

JOBS = LINKED_FIELDS["pro-full-time-jobs"]
JOBS_QUESTION = FormQuestion(id="q-jobs", linked_field_key="pro-full-time-jobs")


def _jobs(*entries, **extra):
    return [{"collection": "full-time", "entries": list(entries), **extra}]


def _entry(entry_type, subtype=None, amount=0, name=None):
    return {"type": entry_type, "subtype": subtype, "name": name, "amount": amount}


async def test_tracking_round_trip(persist, new_collector, render):
    project = await persist(Project(name="Restoring the ridge"))

    await new_collector().sync_relation(
        project,
        JOBS,
        _jobs(_entry("gender", "female", 4), _entry("gender", "male", 6), _entry("age", "youth", 3)),
    )
    answers = await render([JOBS_QUESTION], {"projects": project})

    (tracking,) = answers["q-jobs"]
    assert (tracking["domain"], tracking["type"], tracking["collection"]) == ("demographics", "jobs", "full-time")
    assert tracking["hidden"] is False
    assert [(e["type"], e["subtype"], e["amount"]) for e in tracking["entries"]] == [
        ("gender", "female", 4),
        ("gender", "male", 6),
        ("age", "youth", 3),
    ]


async def test_answer_absent_without_tracking(persist, render):
    project = await persist(Project(name="Restoring the ridge"))

    answers = await render([JOBS_QUESTION], {"projects": project})

    assert "q-jobs" not in answers


async def test_resubmitting_collected_tracking_keeps_rows(persist, new_collector, render, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))
    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 4), _entry("gender", "male", 6)))
    first = (await render([JOBS_QUESTION], {"projects": project}))["q-jobs"]
    entry_ids = [entry.id for entry in await fetch_all(TrackingEntry)]

    await new_collector().sync_relation(project, JOBS, first)

    assert (await render([JOBS_QUESTION], {"projects": project}))["q-jobs"] == first
    assert [entry.id for entry in await fetch_all(TrackingEntry)] == entry_ids
    assert len(await fetch_all(Tracking)) == 1


async def test_repeated_entry_identity_keeps_last_amount(persist, new_collector, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))

    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 2), _entry("gender", "female", 7)))

    entries = await fetch_all(TrackingEntry)
    assert [(e.type, e.subtype, e.amount) for e in entries] == [("gender", "female", 7)]


async def test_entries_missing_from_submission_are_removed(persist, new_collector, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))
    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 4), _entry("gender", "male", 6)))
    female = (await fetch_all(TrackingEntry, TrackingEntry.subtype == "female"))[0]

    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 5)))

    entries = await fetch_all(TrackingEntry)
    assert [(e.id, e.amount) for e in entries] == [(female.id, 5)]


async def test_empty_submission_removes_tracking(persist, new_collector, render, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))
    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 4)))

    await new_collector().sync_relation(project, JOBS, [])

    (tracking,) = await fetch_all(Tracking)
    assert tracking.deleted_at is not None
    assert await fetch_all(TrackingEntry) == []
    assert "q-jobs" not in await render([JOBS_QUESTION], {"projects": project})


async def test_hidden_flag_follows_question_visibility(persist, new_collector, render):
    project = await persist(Project(name="Restoring the ridge"))

    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 4)), hidden=True)
    hidden = (await render([JOBS_QUESTION], {"projects": project}))["q-jobs"][0]
    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 4)), hidden=False)
    shown = (await render([JOBS_QUESTION], {"projects": project}))["q-jobs"][0]

    assert hidden["hidden"] is True
    assert shown["hidden"] is False


async def test_description_written_only_when_supplied(persist, new_collector, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))
    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 1), description="Nursery staff"))

    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 2)))

    (tracking,) = await fetch_all(Tracking)
    assert tracking.description == "Nursery staff"


async def test_stray_collection_is_ignored_with_warning(persist, new_collector, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))

    result = await new_collector().sync_relation(
        project, JOBS, [{"collection": "part-time", "entries": [_entry("gender", "female", 1)]}]
    )

    assert result.warnings == ["tracking_record_collection_ignored"]
    assert [t.collection for t in await fetch_all(Tracking)] == ["full-time"]


async def test_more_than_one_tracking_record_is_rejected(persist, new_collector):
    project = await persist(Project(name="Restoring the ridge"))

    with pytest.raises(SubmissionValidationError):
        await new_collector().sync_relation(project, JOBS, _jobs() + _jobs())


async def test_negative_entry_amount_is_rejected(persist, new_collector, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))

    with pytest.raises(SubmissionValidationError):
        await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", -1)))
    assert await fetch_all(Tracking) == []


async def test_restoration_trackings_use_named_entries(persist, new_collector, render):
    report = await persist(ProjectReport(title="Q1"))
    config = LINKED_FIELDS["pro-rep-rel-trees-restored"]
    question = FormQuestion(id="q-trees", linked_field_key="pro-rep-rel-trees-restored")

    await new_collector().sync_relation(
        report,
        config,
        [{"entries": [_entry("strategy", None, 40, name="direct-seeding"), _entry("strategy", None, 60, name="tree-planting")]}],
    )
    (tracking,) = (await render([question], {"projectReports": report}))["q-trees"]

    assert (tracking["domain"], tracking["type"], tracking["collection"]) == (
        "restoration",
        "trees-restored",
        "restoration-strategy",
    )
    assert [(e["name"], e["amount"]) for e in tracking["entries"]] == [("direct-seeding", 40), ("tree-planting", 60)]


async def test_clear_relations_hard_deletes_tracking_and_entries(persist, new_collector, fetch_all):
    project = await persist(Project(name="Restoring the ridge"))
    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 4)))

    await new_collector().clear_relations(project, JOBS)

    assert await fetch_all(Tracking) == []
    assert await fetch_all(TrackingEntry) == []


async def test_questions_sharing_a_tracking_scope_all_receive_it(persist, new_collector, render):
    project = await persist(Project(name="Restoring the ridge"))
    await new_collector().sync_relation(project, JOBS, _jobs(_entry("gender", "female", 4)))
    repeated = FormQuestion(id="q-jobs-summary", linked_field_key="pro-full-time-jobs")

    answers = await render([JOBS_QUESTION, repeated], {"projects": project})

    assert answers["q-jobs"] == answers["q-jobs-summary"]
    assert [e["amount"] for e in answers["q-jobs"][0]["entries"]] == [4]


def test_kebab_case_normalises_input_types():
    assert kebab_case("allBeneficiaries") == "all-beneficiaries"
    assert kebab_case("hectares_restored") == "hectares-restored"
    assert kebab_case("jobs") == "jobs"


def test_tracking_scope_rejects_unknown_type():
    config = LinkedFieldConfig(
        key="pro-rel-unknown",
        label="Unknown",
        model_type=FormModelType.PROJECTS,
        resource_kind=ResourceKind.RELATION,
        input_type="carbonCredits",
        resource=RelationResource.DEMOGRAPHICS,
        collection="all",
    )

    with pytest.raises(ConfigurationError):
        tracking_scope(config)
    assert tracking_scope(JOBS) == ("demographics", "jobs", "full-time")
