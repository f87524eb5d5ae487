# backend/app/services/data_service.py
import json
import logging
import time
import uuid
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models import (
    Category, InfrastructureItem, JournalEntry, JournalEntryType, LaborItem,
    LaborPriceTable, Priority, Project, Role, StorageTier, TaskStatus, UnitPriceTable,
    unit_price_key,
)

logger = logging.getLogger(__name__)


class DataService:
    """In-memory catalog of default prices, roles and storage tiers"""

    def __init__(self, prices_file: Optional[Path] = None):
        self._unit_prices = self._initialize_unit_prices()
        self._labor_prices = self._initialize_labor_prices()
        if prices_file is not None:
            self._apply_price_overrides(prices_file)

    def _initialize_unit_prices(self) -> Dict[str, float]:
        """Monthly price per CPU core, GB of RAM/storage, Mbps and OS licence"""
        return {
            "cpu": 166000,
            "ram": 111000,
            "diskSanAllFlash": 754,
            "diskSanAllFlashSme": 3683,
            "diskVsan": 219,
            "diskSanHdd": 150,
            "storageMinio": 18839,
            "storageSmb3": 754,
            "storageNfsVsan": 438,
            "storageCeph": 166,
            "bandwidthQt": 1850000,
            "bandwidthInternal": 40000,
            "osWindows": 450000,
            "osLinux": 0,
        }

    def _initialize_labor_prices(self) -> Dict[str, float]:
        """Daily rate per role. Quality Control has no default rate."""
        return {
            Role.PM.value: 2500000,
            Role.BA.value: 2000000,
            Role.SENIOR_DEV.value: 2200000,
            Role.JUNIOR_DEV.value: 1200000,
            Role.TESTER.value: 1000000,
            Role.DESIGNER.value: 1800000,
        }

    def _apply_price_overrides(self, path: Path) -> None:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring price override file %s: %s", path, exc)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring price override file %s: expected a JSON object", path)
            return

        unit = data.get("unit_prices") or {}
        if isinstance(unit, dict):
            for key, value in unit.items():
                legacy_key = unit_price_key(key)
                if legacy_key is None:
                    logger.warning("Unknown unit price key %r in %s", key, path)
                    continue
                self._unit_prices[legacy_key] = value
        labor = data.get("labor_prices") or {}
        if isinstance(labor, dict):
            self._labor_prices.update(labor)
        logger.info("Loaded price overrides from %s", path)

    def default_unit_prices(self) -> UnitPriceTable:
        return UnitPriceTable.from_dict(self._unit_prices)

    def default_labor_prices(self) -> LaborPriceTable:
        return LaborPriceTable.from_dict(self._labor_prices)

    def get_all_roles(self) -> List[Dict[str, Any]]:
        """Get all roles with their default daily rate"""
        return [
            {"id": role.name, "name": role.value, "daily_rate": self._labor_prices.get(role.value, 0)}
            for role in Role
        ]

    def get_storage_tiers(self) -> List[Dict[str, Any]]:
        return [
            {"id": tier.value, "unit_price": self._unit_prices.get(tier.value, 0)}
            for tier in StorageTier
        ]

    def new_project(self, name: str) -> Project:
        now = int(time.time() * 1000)
        return Project(
            id=f"p{uuid.uuid4().hex[:9]}",
            name=name,
            unit_prices=self.default_unit_prices(),
            labor_prices=self.default_labor_prices(),
            created_at=now,
            last_modified=now,
        )

    def sample_project(self) -> Project:
        """Starter project shown to first-time users"""
        project = self.new_project("Sample project")
        today = date.today().isoformat()
        project.infrastructure = [
            InfrastructureItem(
                id="s1",
                category=Category.APP_SERVER,
                operating_system="Ubuntu Linux (64 bit)",
                configuration_text="CPU: 8 core; RAM 16GB; storage: 100GB",
                quantity=1,
                display_name="K8s Master Node",
                storage_tier=StorageTier.DISK_SAN_ALL_FLASH,
                international_bandwidth_mbps=0,
                internal_bandwidth_mbps=10,
            )
        ]
        project.labors = [
            LaborItem(
                id="l1",
                task_name="Business analysis",
                role=Role.BA,
                mandays=10,
                description="Capture functional requirements",
                status=TaskStatus.DONE,
                priority=Priority.HIGH,
                due_date=today,
            ),
            LaborItem(
                id="l2",
                task_name="Database design",
                role=Role.SENIOR_DEV,
                mandays=5,
                description="Design the project schema",
                status=TaskStatus.DOING,
                priority=Priority.URGENT,
                due_date=today,
            ),
        ]
        project.journal = [
            JournalEntry(
                id="j1",
                type=JournalEntryType.MEETING,
                date=today,
                title="Project kick-off",
                content="Confirm team members and split the main modules between teams.",
            )
        ]
        return project


def map_legacy_role(label: Any) -> Role:
    """
    Map a free-text role label from imported rows onto the role enumeration.

    Exact role names win; otherwise the first matching keyword decides and
    anything unrecognised becomes a Junior Developer. "qc"/"quality" map to
    Quality Control and are checked before the Tester keywords.
    """
    text = str(label or "").strip().lower()
    for role in Role:
        if text == role.value.lower() or text == role.name.lower():
            return role
    if "pm" in text or "manager" in text:
        return Role.PM
    if "ba" in text or "analyst" in text:
        return Role.BA
    if "senior" in text:
        return Role.SENIOR_DEV
    if "qc" in text or "quality" in text:
        return Role.QC
    if "test" in text or "qa" in text:
        return Role.TESTER
    if "design" in text or "ui" in text:
        return Role.DESIGNER
    return Role.JUNIOR_DEV
