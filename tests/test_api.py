from __future__ import annotations

from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from backend.app.main import app


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


def _project_payload(**overrides):
    payload = {
        "name": "Shop Platform",
        "infrastructure": [
            {
                "id": "s1",
                "operating_system": "Ubuntu Linux (64 bit)",
                "configuration_text": "CPU: 8 core; RAM 16GB; storage: 100GB",
                "quantity": 1,
                "display_name": "K8s Master Node",
                "storage_tier": "diskSanAllFlash",
            }
        ],
        "labors": [
            {"id": "l1", "task_name": "API", "role": "Senior Developer", "mandays": 6},
            {"id": "l2", "task_name": "Screens", "role": "Junior Developer", "mandays": 3},
        ],
    }
    payload.update(overrides)
    return {"project": payload}


def test_health(client: TestClient) -> None:
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/").json()["status"] == "ready"


def test_catalog_endpoints(client: TestClient) -> None:
    roles = client.get("/api/v1/roles").json()
    assert {"id": "SENIOR_DEV", "name": "Senior Developer", "daily_rate": 2200000} in roles

    tiers = client.get("/api/v1/storage-tiers").json()
    assert tiers[0] == {"id": "diskSanAllFlash", "unit_price": 754}

    prices = client.get("/api/v1/prices/defaults").json()
    assert prices["unit_prices"]["cpu"] == 166000
    assert prices["labor_prices"]["Tester"] == 1000000


def test_parse_endpoint(client: TestClient) -> None:
    resp = client.post("/api/v1/config/parse", json={"configuration_text": "storage: 100GB 1TB"})
    assert resp.status_code == 200
    assert resp.json() == {"cpu_cores": 0, "ram_gb": 100, "storage_gb": 1124}


def test_infrastructure_cost_endpoint(client: TestClient) -> None:
    item = {
        "configuration_text": "CPU: 8 core; RAM 16GB; storage: 100GB",
        "operating_system": "Ubuntu Linux (64 bit)",
        "quantity": 2,
    }
    resp = client.post(
        "/api/v1/infrastructure/cost",
        json={"item": item, "prices": {"cpu": 166000, "ram": 111000, "diskSanAllFlash": 754}},
    )
    assert resp.json() == {"unit_price": 3179400, "total_price": 6358800}


def test_infrastructure_cost_uses_default_prices(client: TestClient) -> None:
    item = {"configuration_text": "CPU: 8 core; RAM 16GB; storage: 100GB", "operating_system": "Windows Server"}
    resp = client.post("/api/v1/infrastructure/cost", json={"item": item})
    assert resp.json()["unit_price"] == 3179400 + 450000


def test_labor_cost_endpoint(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/labor/cost",
        json={"item": {"role": "Senior Developer", "mandays": 5}, "prices": {"Senior Developer": 2200000}},
    )
    assert resp.json() == {"cost": 11000000}

    resp = client.post("/api/v1/labor/cost", json={"item": {"role": "Astronaut", "mandays": 5}})
    assert resp.json() == {"cost": 0}


def test_staffing_endpoint(client: TestClient) -> None:
    labors = [
        {"role": "Senior Developer", "mandays": 5},
        {"role": "Junior Developer", "mandays": 4},
        {"role": "Tester", "mandays": 10},
    ]
    body = client.post("/api/v1/staffing", json={"labors": labors}).json()
    assert body["staffing"]["dev_total_mandays"] == 9
    assert body["staffing"]["pm_mandays"] == pytest.approx(3.0)
    assert body["auto_staffing_cost"] == pytest.approx(3 * 2500000 + 3 * 2000000 + 3 * 1000000)


def test_estimate_endpoint(client: TestClient) -> None:
    body = client.post("/api/v1/estimate", json=_project_payload()).json()
    estimate = body["estimate"]

    assert body["warnings"] == []
    assert estimate["infrastructure_total"] == 3179400
    assert estimate["manual_labor_total"] == 6 * 2200000 + 3 * 1200000
    assert estimate["auto_staffing"]["dev_total_mandays"] == 9
    assert estimate["grand_total"] == pytest.approx(
        estimate["infrastructure_total"] + estimate["manual_labor_total"] + estimate["auto_staffing_cost"]
    )


def test_estimate_reports_warnings(client: TestClient) -> None:
    payload = _project_payload()
    payload["project"]["infrastructure"][0]["configuration_text"] = "to be decided"
    body = client.post("/api/v1/estimate", json=payload).json()
    assert any("could not be parsed" in w for w in body["warnings"])


def test_estimate_requires_project_name(client: TestClient) -> None:
    resp = client.post("/api/v1/estimate", json=_project_payload(name="  "))
    assert resp.status_code == 400


def test_estimate_rejects_malformed_body(client: TestClient) -> None:
    resp = client.post("/api/v1/estimate", json={"project": {"labors": "nope"}})
    assert resp.status_code == 422


def test_quotation_endpoint(client: TestClient) -> None:
    body = client.post("/api/v1/quotation", json=_project_payload()).json()
    assert [r["kind"] for r in body["labor"]] == ["manual", "manual", "auto", "auto", "auto"]
    assert body["infrastructure"][0]["total_price"] == 3179400


def test_deployment_script_endpoint(client: TestClient) -> None:
    resp = client.post("/api/v1/deployment-script", json=_project_payload())
    assert resp.status_code == 200
    assert resp.headers["content-disposition"] == (
        'attachment; filename="Shop_Platform_deploy.sh"; filename*=UTF-8\'\'Shop_Platform_deploy.sh'
    )
    assert resp.text.startswith("#!/bin/bash")
    assert "--name K8s-Master-Node " in resp.text


def test_deployment_script_with_unicode_project_name(client: TestClient) -> None:
    resp = client.post("/api/v1/deployment-script", json=_project_payload(name='Dự án "thương mại"'))
    assert resp.status_code == 200
    disposition = resp.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="Du_an_thuong_mai_deploy.sh"; ')
    assert disposition.endswith("filename*=UTF-8''" + quote("Dự_án_thương_mại_deploy.sh"))
    assert "echo 'Starting infrastructure provisioning for Dự án \"thương mại\"...'" in resp.text


def test_deployment_script_with_non_latin_name_falls_back(client: TestClient) -> None:
    resp = client.post("/api/v1/deployment-script", json=_project_payload(name="项目"))
    assert resp.status_code == 200
    assert 'filename="project_deploy.sh"' in resp.headers["content-disposition"]


def test_sample_project_endpoint(client: TestClient) -> None:
    body = client.get("/api/v1/projects/sample").json()
    assert body["name"] == "Sample project"
    assert body["infrastructure"][0]["display_name"] == "K8s Master Node"
    assert body["labors"][0]["role"] == "Business Analyst"
    assert body["unit_prices"]["cpu"] == 166000


@pytest.mark.parametrize(
    "label, role_id",
    [("PM", "PM"), ("QA Engineer", "TESTER"), ("QC lead", "QC"), ("Frontend", "JUNIOR_DEV")],
)
def test_role_mapping_endpoint(client: TestClient, label: str, role_id: str) -> None:
    body = client.get("/api/v1/roles/map", params={"label": label}).json()
    assert body["id"] == role_id
