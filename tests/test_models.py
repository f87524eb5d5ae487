from __future__ import annotations

from backend.app.models import (
    Category, InfrastructureItem, JournalEntryType, LaborItem, LaborPriceTable, Priority,
    Project, Role, StorageTier, TaskStatus, UnitPriceTable, as_number,
)


def test_as_number() -> None:
    assert as_number("12.5") == 12.5
    assert as_number(None) == 0
    assert as_number("abc") == 0
    assert as_number(float("nan")) == 0
    assert as_number(float("inf")) == 0
    assert as_number(True) == 0
    assert as_number(None, default=1) == 1


def test_unit_price_lookup_by_name_legacy_key_and_tier() -> None:
    prices = UnitPriceTable(disk_vsan=219, bandwidth_international=1850000)
    assert prices.get("disk_vsan") == 219
    assert prices.get("diskVsan") == 219
    assert prices.get(StorageTier.DISK_VSAN) == 219
    assert prices.get("bandwidthQt") == prices.get("bandwidthInternational") == 1850000


def test_unit_price_lookup_never_raises() -> None:
    prices = UnitPriceTable(cpu=None)  # type: ignore[arg-type]
    assert prices.get("cpu") == 0
    assert prices.get("gpu") == 0
    assert prices.get(None) == 0
    assert prices.get("__class__") == 0


def test_unit_price_table_round_trip_keeps_legacy_keys() -> None:
    data = {"cpu": 1, "diskSanHdd": 2, "osWindows": 3, "unknown": 4}
    table = UnitPriceTable.from_dict(data)
    assert table.disk_san_hdd == 2
    dumped = table.to_dict()
    assert dumped["osWindows"] == 3
    assert "unknown" not in dumped


def test_labor_price_table_rate() -> None:
    table = LaborPriceTable.from_dict({"Tester": "1000000", Role.PM: None})
    assert table.rate(Role.TESTER) == 1000000
    assert table.rate("Tester") == 1000000
    assert table.rate(Role.PM) == 0
    assert table.rate(None) == 0


def test_project_from_legacy_payload() -> None:
    project = Project.from_dict({
        "id": "p1",
        "name": "Legacy",
        "servers": [{
            "id": "s1",
            "category": "DbServer",
            "os": "Ubuntu",
            "configRaw": "CPU: 2 core; RAM 4GB; storage: 50GB",
            "quantity": 3,
            "content": "DB node",
            "storageType": "diskSanHdd",
            "bwQt": 1,
            "bwInternal": 5,
        }],
        "labors": [{"id": "l1", "taskName": "API", "role": "Senior Developer", "mandays": 4, "status": "done"}],
        "infraPrices": {"cpu": 166000},
        "laborPrices": {"Senior Developer": 2200000},
        "createdAt": 1700000000000,
    })

    server = project.infrastructure[0]
    assert server.category is Category.DB_SERVER
    assert server.storage_tier is StorageTier.DISK_SAN_HDD
    assert server.display_name == "DB node"
    assert server.internal_bandwidth_mbps == 5

    labor = project.labors[0]
    assert labor.role is Role.SENIOR_DEV
    assert labor.task_name == "API"
    assert labor.status is TaskStatus.DONE

    assert project.unit_prices.cpu == 166000
    assert project.labor_prices.rate(Role.SENIOR_DEV) == 2200000
    assert project.created_at == 1700000000000


def test_project_without_price_tables() -> None:
    project = Project.from_dict({"id": "p2", "name": "Bare"})
    assert project.unit_prices is None
    assert project.labor_prices is None
    assert project.infrastructure == []


def test_unknown_enum_values_are_kept_as_text() -> None:
    item = InfrastructureItem.from_dict({"id": "s", "storage_tier": "tape", "category": "Edge"})
    assert item.storage_tier == "tape"
    assert item.category == "Edge"
    assert LaborItem.from_dict({"id": "l", "role": "Astronaut"}).role == "Astronaut"


def test_project_with_legacy_display_values() -> None:
    project = Project.from_dict({
        "id": "p3",
        "name": "Dự án cũ",
        "servers": [{"id": "s1", "category": "Server database", "configRaw": "4 core"}],
        "labors": [{"id": "l1", "role": "Tester", "status": "Đang làm", "priority": "Cao"}],
        "journal": [{"id": "j1", "type": "Cuộc họp", "date": "2024-05-01", "title": "Kick-off"}],
    })
    assert project.infrastructure[0].category is Category.DB_SERVER
    assert project.labors[0].status is TaskStatus.DOING
    assert project.labors[0].priority is Priority.HIGH
    assert project.journal[0].type is JournalEntryType.MEETING
