# backend/app/services/quotation_service.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models import LaborPriceTable, Project, Role, StorageTier, as_number
from .calculation_service import CalculationService

AUTO_STAFFING_NOTE = "Derived at 1 manday per 3 developer mandays"


class QuotationService:
    """
    Builds the quotation as plain rows.

    Sections are ``summary``, ``infrastructure`` and ``labor``; the labor
    section lists the manual tasks followed by the derived PM, BA and Tester
    rows. Amounts are raw numbers; formatting belongs to whoever renders them.
    """

    def __init__(self, calculation_service: Optional[CalculationService] = None):
        self.calculation_service = calculation_service or CalculationService()

    def build_quotation(self, project: Project, generated_at: Optional[datetime] = None) -> Dict[str, List[Dict[str, Any]]]:
        estimate = self.calculation_service.calculate_project_estimate(project)
        stamp = (generated_at or datetime.now()).isoformat(timespec="seconds")

        summary = [
            {"item": "Project name", "value": project.name},
            {"item": "Infrastructure total (monthly)", "value": estimate.infrastructure_total},
            {"item": "Manual labor total", "value": estimate.manual_labor_total},
            {"item": "Auto staffing total (PM/BA/Tester)", "value": estimate.auto_staffing_cost},
            {"item": "Grand total (monthly)", "value": estimate.grand_total},
            {"item": "Developer mandays", "value": estimate.auto_staffing.dev_total_mandays},
            {"item": "Generated at", "value": stamp},
        ]

        infrastructure = []
        for item in project.infrastructure:
            cost = self.calculation_service.calculate_item_cost(item, project.unit_prices)
            tier = item.storage_tier.value if isinstance(item.storage_tier, StorageTier) else item.storage_tier
            infrastructure.append({
                "display_name": item.display_name,
                "configuration": item.configuration_text,
                "quantity": item.quantity,
                "unit_price": cost.unit_price,
                "total_price": cost.total_price,
                "operating_system": item.operating_system,
                "storage_tier": tier,
            })

        labor_prices = project.labor_prices or LaborPriceTable()
        labor = []
        for item in project.labors:
            role = item.role.value if isinstance(item.role, Role) else item.role
            labor.append({
                "task": item.task_name,
                "role": role,
                "mandays": as_number(item.mandays),
                "description": item.description,
                "daily_rate": labor_prices.rate(role),
                "cost": self.calculation_service.calculate_labor_cost(item, project.labor_prices),
                "kind": "manual",
            })

        stats = estimate.auto_staffing
        for task, role, mandays in (
            ("Project management", Role.PM, stats.pm_mandays),
            ("Business analysis", Role.BA, stats.ba_mandays),
            ("Testing", Role.TESTER, stats.tester_mandays),
        ):
            rate = labor_prices.rate(role)
            labor.append({
                "task": task,
                "role": role.value,
                "mandays": mandays,
                "description": AUTO_STAFFING_NOTE,
                "daily_rate": rate,
                "cost": mandays * rate,
                "kind": "auto",
            })

        return {"summary": summary, "infrastructure": infrastructure, "labor": labor}
