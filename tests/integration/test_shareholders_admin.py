from __future__ import annotations

from decimal import Decimal

from fastapi.testclient import TestClient

from registry.services.records import RecordStore
from tests.conftest import build_values


def _seed(store: RecordStore, count: int, company: str = "atos") -> list[int]:
    return [
        store.insert(
            build_values(
                company=company,
                name=f"Holder {index:02d}",
                email=f"holder{index}@example.com",
                phone=f"+3361000{index:04d}",
                share_count=index,
            )
        ).id
        for index in range(1, count + 1)
    ]


def test_admin_endpoints_require_a_token(client: TestClient) -> None:
    assert client.get("/api/admin/companies/atos/shareholders").status_code in {401, 403}
    assert client.get("/api/admin/statistics").status_code in {401, 403}


def test_list_search_sort_and_paginate(client: TestClient, auth_headers, store: RecordStore) -> None:
    _seed(store, 5)
    _seed(store, 2, company="urpea")

    response = client.get(
        "/api/admin/companies/atos/shareholders",
        params={"sort": "share_count", "order": "asc", "page": 2, "per_page": 2},
        headers=auth_headers,
    )
    searched = client.get(
        "/api/admin/companies/atos/shareholders",
        params={"search": "HOLDER3"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 5
    assert body["page"] == 2
    assert body["per_page"] == 2
    assert [item["share_count"] for item in body["records"]] == [3, 4]
    assert [item["email"] for item in searched.json()["records"]] == ["holder3@example.com"]


def test_page_size_is_capped(client: TestClient, auth_headers, store: RecordStore) -> None:
    _seed(store, 1)

    response = client.get(
        "/api/admin/companies/atos/shareholders", params={"per_page": 5000}, headers=auth_headers
    )

    assert response.json()["per_page"] == 200


def test_get_update_and_delete_flow(client: TestClient, auth_headers, store: RecordStore) -> None:
    record_id = _seed(store, 1)[0]
    url = f"/api/admin/companies/atos/shareholders/{record_id}"

    fetched = client.get(url, headers=auth_headers)
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Holder 01"

    updated = client.patch(
        url, json={"name": "Holder One", "purchase_price": "12.345", "remarks": "checked"}, headers=auth_headers
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Holder One"
    assert Decimal(updated.json()["purchase_price"]) == Decimal("12.35")
    assert updated.json()["company"] == "atos"

    assert client.get(f"/api/admin/companies/urpea/shareholders/{record_id}", headers=auth_headers).status_code == 404

    first_delete = client.delete(url, headers=auth_headers)
    second_delete = client.delete(url, headers=auth_headers)
    assert first_delete.json() == {"deleted": 1}
    assert second_delete.status_code == 200
    assert second_delete.json() == {"deleted": 0}
    assert client.get(url, headers=auth_headers).status_code == 404


def test_update_conflicts_and_validation(client: TestClient, auth_headers, store: RecordStore) -> None:
    first_id, second_id = _seed(store, 2)
    url = f"/api/admin/companies/atos/shareholders/{second_id}"

    conflict = client.patch(url, json={"email": "holder1@example.com"}, headers=auth_headers)
    invalid = client.patch(url, json={"email": "not-an-email"}, headers=auth_headers)
    negative = client.patch(url, json={"share_count": -4}, headers=auth_headers)
    blank_name = client.patch(url, json={"name": "   "}, headers=auth_headers)
    blank_phone = client.patch(url, json={"phone": "  "}, headers=auth_headers)
    missing = client.patch("/api/admin/companies/atos/shareholders/9999", json={"name": "X"}, headers=auth_headers)

    assert conflict.status_code == 409
    assert invalid.status_code == 422
    assert negative.status_code == 422
    assert blank_name.status_code == 422
    assert blank_phone.status_code == 422
    assert missing.status_code == 404
    assert store.find_by_id(first_id, "atos").email == "holder1@example.com"
    unchanged = store.find_by_id(second_id, "atos")
    assert unchanged.name == "Holder 02"
    assert unchanged.phone == "+33610000002"


def test_bulk_delete_is_scoped_to_company(client: TestClient, auth_headers, store: RecordStore) -> None:
    atos_ids = _seed(store, 3)
    urpea_ids = _seed(store, 1, company="urpea")

    response = client.post(
        "/api/admin/companies/atos/shareholders/bulk-delete",
        json={"ids": [atos_ids[0], atos_ids[2], urpea_ids[0]]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"deleted": 2}
    assert store.count_total("atos") == 1
    assert store.count_total("urpea") == 1


def test_compliance_role_can_read_but_not_modify(
    client: TestClient, compliance_headers, store: RecordStore
) -> None:
    record_id = _seed(store, 1)[0]
    url = f"/api/admin/companies/atos/shareholders/{record_id}"

    assert client.get(url, headers=compliance_headers).status_code == 200
    assert client.delete(url, headers=compliance_headers).status_code == 403
    assert client.patch(url, json={"name": "X"}, headers=compliance_headers).status_code == 403


def test_companies_and_statistics_overview(client: TestClient, auth_headers, store: RecordStore) -> None:
    _seed(store, 2)
    _seed(store, 1, company="globex")

    companies = client.get("/api/admin/companies", headers=auth_headers).json()
    statistics = client.get("/api/admin/statistics", headers=auth_headers).json()["companies"]

    assert companies == [
        {"company": "atos", "display_name": "ATOS"},
        {"company": "urpea", "display_name": "URPEA"},
        {"company": "globex", "display_name": "GLOBEX"},
    ]
    assert statistics["atos"]["total_shares"] == 3
    assert statistics["globex"]["shareholder_count"] == 1
    assert statistics["urpea"]["shareholder_count"] == 0
