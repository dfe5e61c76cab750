from __future__ import annotations

import pytest

from revolut_transformer.categorize import OpenAIClassifier
from revolut_transformer.config import Settings
from revolut_transformer.models import TypeFilter
from revolut_transformer.session import TransformSession
from tests.helpers.openai_stub import OpenAIStub, json_reply, status_error

HEADER = "Type,Product,Started Date,Completed Date,Description,Amount,Fee,Currency,State,Balance"

EXPORT = "\n".join(
    [
        HEADER,
        'CARD_PAYMENT,Current,2025-08-03 10:00,2025-08-03 10:05,Lidl,"-20,00",0,EUR,COMPLETED,"100,00"',
        'TOPUP,Current,2025-08-01 09:00,2025-08-01 09:00,Salary ACME,"2.500,00",0,EUR,COMPLETED,"2.600,00"',
        'CARD_PAYMENT,Current,2025-08-02 12:00,,Pending Bar ,"-3,50",0,EUR,PENDING,"2.596,50"',
        'CARD_PAYMENT,Current,2025-08-02 18:00,2025-08-02 18:01,Netflix,"-12,99",0,EUR,COMPLETED,"2.583,51"',
    ]
)


def _session(**settings) -> TransformSession:
    s = TransformSession(Settings(**settings))
    s.load_csv(EXPORT)
    return s


def test_load_csv_builds_rows_and_status():
    s = _session()
    assert s.status == "Loaded 4 rows."
    assert s.errors == []
    assert len(s.raw_rows) == 4
    assert [r.name for r in s.rows] == ["Lidl", "Salary ACME", "Netflix"]
    assert [r.category for r in s.rows] == ["Groceries", "Income", "Entertainment"]
    assert s.unique_names == ["Lidl", "Salary ACME", "Netflix"]


def test_load_csv_reports_missing_columns_and_parse_issues():
    s = TransformSession()
    s.load_csv("Description,Amount\nLidl,1,extra\nUber\n")
    assert s.errors[0].startswith("Parsing issues: Row 1: too many fields")
    assert " | Row 2: too few fields" in s.errors[0]
    assert s.errors[1].startswith("Missing expected columns: Type, Product")
    assert s.errors[1].endswith("Got: Description, Amount")


def test_new_upload_replaces_everything():
    s = _session()
    s.category_map.merge({"Lidl": "Shopping"})
    s.set_notes(0, "weekly")
    s.load_csv(HEADER + "\n")
    assert s.rows == []
    assert len(s.category_map) == 0
    assert s.status == "Loaded 0 rows."


def test_export_respects_type_filter():
    s = _session(type_filter=TypeFilter.EXPENSE)
    assert s.to_csv().splitlines() == [
        "2025-08-03,Expense,20.00,EUR,Groceries,Lidl,Revolut,,Revolut CSV Transformer",
        "2025-08-02,Expense,12.99,EUR,Entertainment,Netflix,Revolut,,Revolut CSV Transformer",
    ]
    s.update_settings(Settings(type_filter=TypeFilter.INCOME))
    assert [r.name for r in s.export_rows()] == ["Salary ACME"]
    assert len(s.rows) == 3


def test_header_option():
    s = _session(type_filter=TypeFilter.INCOME)
    lines = s.to_csv(header=True).splitlines()
    assert lines[0] == "Date,Type,Amount,Currency,Category,Name,Account,Notes,Source"
    assert len(lines) == 2


def test_edits_survive_rebuild_and_classification(monkeypatch):
    s = _session(api_key="sk-test")
    s.set_category(0, "Shopping")
    s.set_notes(2, 'said "hi", twice')
    s.set_date(1, "2025-08-01T23:30:00+00:00")

    OpenAIStub(lambda names: json_reply({n: "Other" for n in names})).install(monkeypatch)
    assert s.classify() is True
    assert s.status == "Classification complete."

    by_idx = {r.idx: r for r in s.rows}
    assert by_idx[0].category == "Shopping"
    assert by_idx[1].category == "Other"
    assert by_idx[2].notes == 'said "hi", twice'
    assert by_idx[1].date == "2025-08-01"
    assert '"said ""hi"", twice"' in s.to_csv()


def test_set_date_normalizes_and_rejects_unknown_idx():
    s = _session()
    assert s.set_date(0, "??").date == ""
    with pytest.raises(KeyError):
        s.set_notes(99, "x")


def test_changing_completed_filter_clears_edits():
    s = _session()
    s.set_notes(0, "kept?")
    s.update_settings(Settings(only_completed=True, website_name="Other Site"))
    assert s.rows[0].notes == "kept?"
    assert s.rows[0].source == "Other Site"
    s.update_settings(Settings(only_completed=False))
    assert len(s.rows) == 4
    assert all(r.notes == "" for r in s.rows)


def test_sort_by_date_is_stable_with_undated_last():
    s = _session(only_completed=False)
    s.set_date(1, "")
    s.sort_by_date()
    assert [r.name for r in s.rows] == ["Pending Bar ", "Netflix", "Lidl", "Salary ACME"]
    s.sort_by_date(descending=True)
    assert [r.name for r in s.rows] == ["Lidl", "Pending Bar ", "Netflix", "Salary ACME"]
    s.set_notes(0, "after sort")
    assert s.rows[0].notes == "after sort"


def test_classify_without_key_records_error(monkeypatch):
    stub = OpenAIStub(lambda names: "{}").install(monkeypatch)
    s = _session()
    assert s.classify() is False
    assert s.errors == ["Please add your LLM API key in Settings (OPENAI_API_KEY)."]
    assert stub.calls == []
    assert [r.category for r in s.rows] == ["Groceries", "Income", "Entertainment"]


def test_classify_partial_failure_keeps_completed_batches(monkeypatch):
    monkeypatch.setattr("revolut_transformer.categorize._sleep_backoff", lambda attempt: None)

    def reply(names):
        if names == ["Netflix"]:
            return status_error(401, "invalid key")
        return json_reply({n: "Travel" for n in names})

    OpenAIStub(reply).install(monkeypatch)
    s = _session()
    ok = s.classify(OpenAIClassifier("sk-test", batch_size=2))
    assert ok is False
    assert "401" in s.errors[-1]
    assert [r.category for r in s.rows] == ["Travel", "Travel", "Entertainment"]
