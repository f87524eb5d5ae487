# backend/app/services/calculation_service.py
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..models import (
    CalculationResult, InfrastructureItem, LaborItem, LaborPriceTable,
    Project, ProjectEstimate, Role, StaffingStats, StorageTier, UnitPriceTable,
    DEVELOPER_ROLES, as_number,
)
from .config_parser import parse_config

logger = logging.getLogger(__name__)

# For every 3 developer mandays, 1 manday each of PM, BA and Tester is implied.
STAFFING_RATIO = 1 / 3

WINDOWS_OS_TOKEN = "window"


def _role_value(role: Any) -> str:
    return role.value if isinstance(role, Role) else str(role or "")


def _quantity(value: Any) -> float:
    quantity = as_number(value)
    if quantity <= 0:
        logger.debug("Non-positive quantity %r counted as 1", value)
        return 1
    return quantity


def calculate_item_cost(item: InfrastructureItem, prices: Optional[UnitPriceTable]) -> CalculationResult:
    """Monthly unit and extended price of one infrastructure line item."""
    if prices is None or item is None:
        return CalculationResult(unit_price=0.0, total_price=0.0)

    config = parse_config(item.configuration_text)
    is_windows = WINDOWS_OS_TOKEN in (item.operating_system or "").lower()

    cpu_cost = config.cpu_cores * prices.get("cpu")
    ram_cost = config.ram_gb * prices.get("ram")
    storage_cost = config.storage_gb * prices.storage_price(item.storage_tier)

    international_bw_cost = as_number(item.international_bandwidth_mbps) * prices.get("bandwidth_international")
    internal_bw_cost = as_number(item.internal_bandwidth_mbps) * prices.get("bandwidth_internal")

    os_cost = prices.get("os_windows") if is_windows else prices.get("os_linux")

    unit_price = cpu_cost + ram_cost + storage_cost + os_cost + international_bw_cost + internal_bw_cost
    return CalculationResult(unit_price=unit_price, total_price=unit_price * _quantity(item.quantity))


def calculate_labor_cost(item: LaborItem, prices: Optional[LaborPriceTable]) -> float:
    if item is None or prices is None:
        return 0.0
    return as_number(item.mandays) * prices.rate(item.role)


def calculate_auto_staffing(labors: Iterable[LaborItem]) -> StaffingStats:
    """Derive PM, BA and Tester mandays from the developer mandays of a project."""
    developer_roles = {r.value for r in DEVELOPER_ROLES}
    dev_total = sum(
        as_number(labor.mandays)
        for labor in (labors or [])
        if labor is not None and _role_value(labor.role) in developer_roles
    )
    return StaffingStats(
        dev_total_mandays=dev_total,
        pm_mandays=dev_total * STAFFING_RATIO,
        ba_mandays=dev_total * STAFFING_RATIO,
        tester_mandays=dev_total * STAFFING_RATIO,
    )


def price_auto_staffing(stats: StaffingStats, labor_prices: Optional[LaborPriceTable]) -> float:
    if stats is None or labor_prices is None:
        return 0.0
    return (
        stats.pm_mandays * labor_prices.rate(Role.PM)
        + stats.ba_mandays * labor_prices.rate(Role.BA)
        + stats.tester_mandays * labor_prices.rate(Role.TESTER)
    )


class CalculationService:
    """Composes the item, labor and staffing rules into project-level figures."""

    def calculate_item_cost(self, item: InfrastructureItem, prices: Optional[UnitPriceTable]) -> CalculationResult:
        return calculate_item_cost(item, prices)

    def calculate_labor_cost(self, item: LaborItem, prices: Optional[LaborPriceTable]) -> float:
        return calculate_labor_cost(item, prices)

    def calculate_auto_staffing(self, labors: Iterable[LaborItem]) -> StaffingStats:
        return calculate_auto_staffing(labors)

    def price_auto_staffing(self, stats: StaffingStats, labor_prices: Optional[LaborPriceTable]) -> float:
        return price_auto_staffing(stats, labor_prices)

    def calculate_project_estimate(self, project: Project) -> ProjectEstimate:
        """Main estimation calculation method"""

        # Infrastructure
        item_breakdown: List[Dict[str, Any]] = []
        infrastructure_total = 0.0
        for item in project.infrastructure:
            config = parse_config(item.configuration_text)
            cost = calculate_item_cost(item, project.unit_prices)
            infrastructure_total += cost.total_price
            item_breakdown.append({
                "id": item.id,
                "display_name": item.display_name,
                "quantity": _quantity(item.quantity),
                "cpu_cores": config.cpu_cores,
                "ram_gb": config.ram_gb,
                "storage_gb": config.storage_gb,
                "unit_price": cost.unit_price,
                "total_price": cost.total_price,
            })

        # Manually entered labor, grouped by role
        role_breakdown: Dict[str, Any] = {}
        manual_labor_total = 0.0
        manual_mandays = 0.0
        for labor in project.labors:
            role = _role_value(labor.role)
            mandays = as_number(labor.mandays)
            cost = calculate_labor_cost(labor, project.labor_prices)
            entry = role_breakdown.setdefault(role, {
                "role_name": role,
                "items": 0,
                "mandays": 0.0,
                "rate": project.labor_prices.rate(role) if project.labor_prices else 0.0,
                "cost": 0.0,
            })
            entry["items"] += 1
            entry["mandays"] += mandays
            entry["cost"] += cost
            manual_labor_total += cost
            manual_mandays += mandays

        # Derived staffing on top of the manual entries
        stats = calculate_auto_staffing(project.labors)
        auto_staffing_cost = price_auto_staffing(stats, project.labor_prices)

        labor_total = manual_labor_total + auto_staffing_cost
        total_mandays = manual_mandays + stats.pm_mandays + stats.ba_mandays + stats.tester_mandays

        return ProjectEstimate(
            infrastructure_total=infrastructure_total,
            manual_labor_total=manual_labor_total,
            auto_staffing=stats,
            auto_staffing_cost=auto_staffing_cost,
            labor_total=labor_total,
            grand_total=infrastructure_total + labor_total,
            total_mandays=total_mandays,
            breakdown_by_item=item_breakdown,
            breakdown_by_role=role_breakdown,
        )

    def validate_project(self, project: Project) -> List[str]:
        """Validate project input and return any warnings"""
        warnings = []
        known_tiers = {t.value for t in StorageTier}

        for item in project.infrastructure:
            label = item.display_name or item.id
            config = parse_config(item.configuration_text)
            if config.cpu_cores == 0 and config.ram_gb == 0 and config.storage_gb == 0:
                warnings.append(f"Configuration for '{label}' could not be parsed: {item.configuration_text!r}")
            if as_number(item.quantity) <= 0:
                warnings.append(f"Quantity for '{label}' is not positive; counted as 1")
            tier = item.storage_tier.value if isinstance(item.storage_tier, StorageTier) else str(item.storage_tier)
            if tier not in known_tiers:
                warnings.append(f"Unknown storage tier '{tier}' for '{label}'; all-flash SAN price used")

        if project.unit_prices is None and project.infrastructure:
            warnings.append("No unit price table; infrastructure is costed at 0")

        missing_rates = set()
        for labor in project.labors:
            role = _role_value(labor.role)
            if not project.labor_prices or project.labor_prices.rate(role) == 0:
                missing_rates.add(role)
        for role in sorted(missing_rates):
            warnings.append(f"No daily rate for role '{role}'; its tasks are costed at 0")

        return warnings
