from __future__ import annotations

import asyncio
import csv
import io
from datetime import date

import pytest
from fastapi.testclient import TestClient

from registry.core.config import get_settings
from registry.services.notifications import OutboundEmail
from registry.services.records import RecordStore
from tests.conftest import build_values

BOM = "\ufeff".encode("utf-8")


@pytest.fixture()
def seeded(store: RecordStore) -> list[int]:
    return [
        store.insert(build_values(name="Alice Martin", email="alice@example.com", phone="+33600000001")).id,
        store.insert(build_values(name="Bruno Petit", email="bruno@example.com", phone="+33600000002")).id,
        store.insert(
            build_values(company="urpea", name="Chloe Roux", email="chloe@example.com", phone="+33600000003")
        ).id,
    ]


def _csv_rows(content: bytes) -> list[list[str]]:
    assert content.startswith(BOM)
    return list(csv.reader(io.StringIO(content[len(BOM):].decode("utf-8"))))


def test_csv_export_downloads_company_records(client: TestClient, auth_headers, seeded: list[int]) -> None:
    response = client.get("/api/admin/companies/atos/export", params={"format": "csv"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/csv; charset=utf-8"
    expected_name = f"atos-shareholders-{date.today():%Y-%m-%d}.csv"
    assert response.headers["content-disposition"] == f'attachment; filename="{expected_name}"'
    rows = _csv_rows(response.content)
    assert rows[0][0] == "ID"
    assert [row[1] for row in rows[1:]] == ["Bruno Petit", "Alice Martin"]


def test_export_honours_search_and_selected_ids(client: TestClient, auth_headers, seeded: list[int]) -> None:
    searched = client.get(
        "/api/admin/companies/atos/export", params={"search": "alice"}, headers=auth_headers
    )
    selected = client.get(
        "/api/admin/companies/atos/export",
        params=[("ids", str(seeded[1])), ("ids", str(seeded[2]))],
        headers=auth_headers,
    )

    assert [row[1] for row in _csv_rows(searched.content)[1:]] == ["Alice Martin"]
    assert [row[1] for row in _csv_rows(selected.content)[1:]] == ["Bruno Petit"]


def test_excel_export_and_unknown_format(client: TestClient, compliance_headers, seeded: list[int]) -> None:
    excel = client.get(
        "/api/admin/companies/atos/export", params={"format": "excel"}, headers=compliance_headers
    )
    unknown = client.get(
        "/api/admin/companies/atos/export", params={"format": "pdf"}, headers=compliance_headers
    )

    assert excel.status_code == 200
    assert excel.headers["content-type"] == "application/vnd.ms-excel; charset=utf-8"
    assert excel.headers["content-disposition"].endswith('.xls"')
    assert excel.content.startswith(BOM + b'<table border="1">')
    assert unknown.status_code == 400


def test_bulk_email_to_whole_company(
    client: TestClient, auth_headers, seeded: list[int], outbox: list[OutboundEmail]
) -> None:
    response = client.post(
        "/api/admin/companies/atos/emails",
        json={"subject": "Case update", "html_body": "<p>Hearing scheduled</p>"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"sent": 2}
    assert sorted(message.recipient for message in outbox) == ["alice@example.com", "bruno@example.com"]
    assert {message.subject for message in outbox} == {"Case update"}


def test_bulk_email_to_selected_ids(
    client: TestClient, auth_headers, seeded: list[int], outbox: list[OutboundEmail]
) -> None:
    response = client.post(
        "/api/admin/companies/atos/emails",
        json={"subject": "Documents", "html_body": "<p>Please send</p>", "ids": [seeded[0], seeded[2]]},
        headers=auth_headers,
    )

    assert response.json() == {"sent": 1}
    assert [message.recipient for message in outbox] == ["alice@example.com"]


def test_bulk_email_is_skipped_when_notifications_are_disabled(
    client: TestClient,
    auth_headers,
    seeded: list[int],
    outbox: list[OutboundEmail],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(get_settings(), "email_notifications", False)

    response = client.post(
        "/api/admin/companies/atos/emails",
        json={"subject": "Case update", "html_body": "<p>Hi</p>"},
        headers=auth_headers,
    )

    assert response.json() == {"sent": 0}
    assert outbox == []


def test_bulk_email_requires_admin_role(client: TestClient, compliance_headers) -> None:
    response = client.post(
        "/api/admin/companies/atos/emails",
        json={"subject": "Case update", "html_body": "<p>Hi</p>"},
        headers=compliance_headers,
    )

    assert response.status_code == 403


def test_bulk_email_reads_recipients_off_the_event_loop(
    client: TestClient, auth_headers, seeded: list[int], monkeypatch: pytest.MonkeyPatch
) -> None:
    loop_states: list[bool] = []
    original = RecordStore.find_all

    def observed_find_all(self: RecordStore, *args: object, **kwargs: object):  # type: ignore[no-untyped-def]
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            loop_states.append(False)
        else:
            loop_states.append(True)
        return original(self, *args, **kwargs)  # type: ignore[arg-type]

    monkeypatch.setattr(RecordStore, "find_all", observed_find_all)

    response = client.post(
        "/api/admin/companies/atos/emails",
        json={"subject": "Case update", "html_body": "<p>Hi</p>"},
        headers=auth_headers,
    )

    assert response.json() == {"sent": 2}
    assert loop_states == [False]
