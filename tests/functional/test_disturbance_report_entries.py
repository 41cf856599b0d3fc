"""Named entries of a disturbance report."""

from __future__ import annotations

import pytest

from linked_fields.errors import ConfigurationError
from linked_fields.logic.linked_field_catalog import LINKED_FIELDS
from linked_fields.models.entities import DisturbanceReport, Site
from linked_fields.models.linked_field import FormQuestion
from linked_fields.models.owners import FormModelType
from linked_fields.models.relations import DisturbanceReportEntry

pytestmark = pytest.mark.anyio

ENTRIES = LINKED_FIELDS["dis-rep-entries"]
QUESTION = FormQuestion(id="q-entries", linked_field_key="dis-rep-entries")


async def test_entries_round_trip_and_skip_unnamed(persist, new_collector, render):
    report = await persist(DisturbanceReport(title="Flood"))

    result = await new_collector().sync_relation(
        report,
        ENTRIES,
        [
            {"name": "intensity", "inputType": "select", "title": "Intensity", "value": "high"},
            {"name": "", "value": "orphan"},
            {"name": "date-of-disturbance", "inputType": "date", "value": "2024-05-01"},
        ],
    )

    assert result.warnings == ["disturbance_report_entry_without_name"]
    collected = (await render([QUESTION], {"disturbanceReports": report}))["q-entries"]
    assert [(e["name"], e["inputType"], e["value"]) for e in collected] == [
        ("intensity", "select", "high"),
        ("date-of-disturbance", "date", "2024-05-01"),
    ]


async def test_entries_match_by_name_and_remove_missing(persist, new_collector, fetch_all):
    report = await persist(DisturbanceReport(title="Flood"))
    await new_collector().sync_relation(
        report, ENTRIES, [{"name": "intensity", "value": "high"}, {"name": "extent", "value": "0-20"}]
    )
    intensity, extent = await fetch_all(DisturbanceReportEntry)

    await new_collector().sync_relation(report, ENTRIES, [{"name": "intensity", "value": "low"}])

    rows = {row.id: row for row in await fetch_all(DisturbanceReportEntry)}
    assert len(rows) == 2
    assert rows[intensity.id].value == "low"
    assert rows[extent.id].deleted_at is not None


async def test_entry_renamed_through_uuid(persist, new_collector, fetch_all):
    report = await persist(DisturbanceReport(title="Flood"))
    await new_collector().sync_relation(report, ENTRIES, [{"name": "intensity", "value": "high"}])
    (row,) = await fetch_all(DisturbanceReportEntry)

    await new_collector().sync_relation(report, ENTRIES, [{"uuid": row.uuid, "name": "severity", "value": "high"}])

    (renamed,) = await fetch_all(DisturbanceReportEntry)
    assert (renamed.id, renamed.name, renamed.deleted_at) == (row.id, "severity", None)


async def test_empty_submission_clears_entries(persist, new_collector, render):
    report = await persist(DisturbanceReport(title="Flood"))
    await new_collector().sync_relation(report, ENTRIES, [{"name": "intensity", "value": "high"}])

    await new_collector().sync_relation(report, ENTRIES, [])

    assert (await render([QUESTION], {"disturbanceReports": report}))["q-entries"] == []


async def test_entries_only_belong_to_disturbance_reports(persist, new_collector):
    site = await persist(Site(name="North ridge"))
    collector = new_collector()

    with pytest.raises(ConfigurationError):
        await collector.sync_relation(site, ENTRIES, [{"name": "intensity"}])
    with pytest.raises(ConfigurationError):
        collector.add_field(ENTRIES, FormModelType.SITES, "q")
