from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field
from enum import Enum
import math


def as_number(value: Any, default: float = 0.0) -> float:
    """Coerce a loosely-typed input to a finite float, or return ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


class Category(str, Enum):
    APP_SERVER = "AppServer"
    DB_SERVER = "DbServer"
    OTHER = "Other"


class StorageTier(str, Enum):
    DISK_SAN_ALL_FLASH = "diskSanAllFlash"
    DISK_SAN_ALL_FLASH_SME = "diskSanAllFlashSme"
    DISK_VSAN = "diskVsan"
    DISK_SAN_HDD = "diskSanHdd"
    STORAGE_MINIO = "storageMinio"
    STORAGE_SMB3 = "storageSmb3"
    STORAGE_NFS_VSAN = "storageNfsVsan"
    STORAGE_CEPH = "storageCeph"


class Role(str, Enum):
    PM = "Project Manager"
    BA = "Business Analyst"
    SENIOR_DEV = "Senior Developer"
    JUNIOR_DEV = "Junior Developer"
    TESTER = "Tester"
    QC = "Quality Control"
    DESIGNER = "UI/UX Designer"


DEVELOPER_ROLES = (Role.SENIOR_DEV, Role.JUNIOR_DEV)


class TaskStatus(str, Enum):
    TODO = "todo"
    DOING = "doing"
    REVIEW = "review"
    DONE = "done"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class JournalEntryType(str, Enum):
    MEETING = "meeting"
    MILESTONE = "milestone"
    NOTE = "note"


# Display values written by older stored projects
_LEGACY_ENUM_VALUES: Dict[type, Dict[str, Enum]] = {
    Category: {
        "Server ứng dụng": Category.APP_SERVER,
        "Server database": Category.DB_SERVER,
        "Dịch vụ khác": Category.OTHER,
    },
    TaskStatus: {
        "Chờ thực hiện": TaskStatus.TODO,
        "Đang làm": TaskStatus.DOING,
        "Đang kiểm tra": TaskStatus.REVIEW,
        "Hoàn thành": TaskStatus.DONE,
    },
    Priority: {
        "Thấp": Priority.LOW,
        "Trung bình": Priority.MEDIUM,
        "Cao": Priority.HIGH,
        "Khẩn cấp": Priority.URGENT,
    },
    JournalEntryType: {
        "Cuộc họp": JournalEntryType.MEETING,
        "Mốc quan trọng": JournalEntryType.MILESTONE,
        "Ghi chú": JournalEntryType.NOTE,
    },
}


def _enum_or_raw(enum_cls, value: Any) -> Any:
    if isinstance(value, enum_cls) or value is None:
        return value
    legacy = _LEGACY_ENUM_VALUES.get(enum_cls, {})
    if isinstance(value, str) and value in legacy:
        return legacy[value]
    try:
        return enum_cls(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class ResourceQuantity:
    cpu_cores: int = 0
    ram_gb: int = 0
    storage_gb: int = 0


@dataclass
class InfrastructureItem:
    id: str
    configuration_text: str = ""
    category: Category = Category.APP_SERVER
    operating_system: str = ""
    quantity: int = 1
    display_name: str = ""
    note: str = ""
    # Kept as a plain string when it is not one of the known tiers
    storage_tier: Union[StorageTier, str] = StorageTier.DISK_SAN_ALL_FLASH
    international_bandwidth_mbps: float = 0.0
    internal_bandwidth_mbps: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InfrastructureItem":
        """Build an item from API payloads or stored projects (legacy camelCase keys)."""
        return cls(
            id=str(_pick(data, "id", default="")),
            configuration_text=str(_pick(data, "configuration_text", "configRaw", default="")),
            category=_enum_or_raw(Category, _pick(data, "category", default=Category.APP_SERVER)),
            operating_system=str(_pick(data, "operating_system", "os", default="")),
            quantity=_pick(data, "quantity", default=1),
            display_name=str(_pick(data, "display_name", "content", default="")),
            note=str(_pick(data, "note", default="")),
            storage_tier=_enum_or_raw(
                StorageTier, _pick(data, "storage_tier", "storageType", default=StorageTier.DISK_SAN_ALL_FLASH)
            ),
            international_bandwidth_mbps=_pick(data, "international_bandwidth_mbps", "bwQt", default=0.0),
            internal_bandwidth_mbps=_pick(data, "internal_bandwidth_mbps", "bwInternal", default=0.0),
        )


# Field name -> legacy camelCase key used by stored price tables
_UNIT_PRICE_KEYS: Dict[str, str] = {
    "cpu": "cpu",
    "ram": "ram",
    "disk_san_all_flash": StorageTier.DISK_SAN_ALL_FLASH.value,
    "disk_san_all_flash_sme": StorageTier.DISK_SAN_ALL_FLASH_SME.value,
    "disk_vsan": StorageTier.DISK_VSAN.value,
    "disk_san_hdd": StorageTier.DISK_SAN_HDD.value,
    "storage_minio": StorageTier.STORAGE_MINIO.value,
    "storage_smb3": StorageTier.STORAGE_SMB3.value,
    "storage_nfs_vsan": StorageTier.STORAGE_NFS_VSAN.value,
    "storage_ceph": StorageTier.STORAGE_CEPH.value,
    "bandwidth_international": "bandwidthQt",
    "bandwidth_internal": "bandwidthInternal",
    "os_windows": "osWindows",
    "os_linux": "osLinux",
}
_UNIT_PRICE_ALIASES: Dict[str, str] = {legacy: name for name, legacy in _UNIT_PRICE_KEYS.items()}
_UNIT_PRICE_ALIASES["bandwidthInternational"] = "bandwidth_international"


def unit_price_key(key: str) -> Optional[str]:
    """Legacy key for a unit price field name or alias, None when unknown."""
    return _UNIT_PRICE_KEYS.get(_UNIT_PRICE_ALIASES.get(key, key))


@dataclass
class UnitPriceTable:
    cpu: float = 0.0
    ram: float = 0.0
    disk_san_all_flash: float = 0.0
    disk_san_all_flash_sme: float = 0.0
    disk_vsan: float = 0.0
    disk_san_hdd: float = 0.0
    storage_minio: float = 0.0
    storage_smb3: float = 0.0
    storage_nfs_vsan: float = 0.0
    storage_ceph: float = 0.0
    bandwidth_international: float = 0.0
    bandwidth_internal: float = 0.0
    os_windows: float = 0.0
    os_linux: float = 0.0

    def get(self, key: Any) -> float:
        """Price for a field name, legacy key or StorageTier; 0.0 when unknown."""
        if isinstance(key, Enum):
            key = key.value
        name = str(key) if key is not None else ""
        name = _UNIT_PRICE_ALIASES.get(name, name)
        if name not in _UNIT_PRICE_KEYS:
            return 0.0
        return as_number(getattr(self, name, 0.0))

    def storage_price(self, tier: Any) -> float:
        return self.get(tier) or self.get(StorageTier.DISK_SAN_ALL_FLASH)

    def to_dict(self) -> Dict[str, float]:
        return {legacy: self.get(name) for name, legacy in _UNIT_PRICE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UnitPriceTable":
        values: Dict[str, float] = {}
        for key, value in (data or {}).items():
            name = _UNIT_PRICE_ALIASES.get(key, key)
            if name in _UNIT_PRICE_KEYS:
                values[name] = as_number(value)
        return cls(**values)


@dataclass
class LaborPriceTable:
    rates: Dict[str, float] = field(default_factory=dict)

    def rate(self, role: Any) -> float:
        if isinstance(role, Enum):
            role = role.value
        return as_number(self.rates.get(str(role))) if role is not None else 0.0

    def to_dict(self) -> Dict[str, float]:
        return dict(self.rates)

    @classmethod
    def from_dict(cls, data: Optional[Dict[Any, Any]]) -> "LaborPriceTable":
        rates: Dict[str, float] = {}
        for key, value in (data or {}).items():
            name = key.value if isinstance(key, Enum) else str(key)
            rates[name] = as_number(value)
        return cls(rates=rates)


@dataclass
class LaborItem:
    id: str
    task_name: str = ""
    role: Union[Role, str] = Role.JUNIOR_DEV
    mandays: float = 0.0
    description: str = ""
    # Workflow metadata, not used in costing
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    assignee: Optional[str] = None
    due_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LaborItem":
        return cls(
            id=str(_pick(data, "id", default="")),
            task_name=str(_pick(data, "task_name", "taskName", default="")),
            role=_enum_or_raw(Role, _pick(data, "role", default=Role.JUNIOR_DEV)),
            mandays=_pick(data, "mandays", default=0.0),
            description=str(_pick(data, "description", default="")),
            status=_enum_or_raw(TaskStatus, _pick(data, "status")),
            priority=_enum_or_raw(Priority, _pick(data, "priority")),
            assignee=_pick(data, "assignee"),
            due_date=_pick(data, "due_date", "dueDate"),
        )


@dataclass
class JournalEntry:
    id: str
    type: JournalEntryType
    date: str
    title: str
    content: str = ""


@dataclass(frozen=True)
class CalculationResult:
    unit_price: float = 0.0
    total_price: float = 0.0


@dataclass(frozen=True)
class StaffingStats:
    dev_total_mandays: float = 0.0
    pm_mandays: float = 0.0
    ba_mandays: float = 0.0
    tester_mandays: float = 0.0


@dataclass
class Project:
    id: str
    name: str
    infrastructure: List[InfrastructureItem] = field(default_factory=list)
    labors: List[LaborItem] = field(default_factory=list)
    unit_prices: Optional[UnitPriceTable] = None
    labor_prices: Optional[LaborPriceTable] = None
    journal: List[JournalEntry] = field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    created_at: Optional[int] = None
    last_modified: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        unit_prices = _pick(data, "unit_prices", "infraPrices")
        labor_prices = _pick(data, "labor_prices", "laborPrices")
        journal = []
        for entry in _pick(data, "journal", default=[]) or []:
            journal.append(JournalEntry(
                id=str(entry.get("id", "")),
                type=_enum_or_raw(JournalEntryType, entry.get("type", JournalEntryType.NOTE)),
                date=str(entry.get("date", "")),
                title=str(entry.get("title", "")),
                content=str(entry.get("content", "")),
            ))
        return cls(
            id=str(_pick(data, "id", default="")),
            name=str(_pick(data, "name", default="")),
            infrastructure=[
                InfrastructureItem.from_dict(s) for s in _pick(data, "infrastructure", "servers", default=[]) or []
            ],
            labors=[LaborItem.from_dict(l) for l in _pick(data, "labors", default=[]) or []],
            unit_prices=UnitPriceTable.from_dict(unit_prices) if unit_prices is not None else None,
            labor_prices=LaborPriceTable.from_dict(labor_prices) if labor_prices is not None else None,
            journal=journal,
            start_date=_pick(data, "start_date", "startDate"),
            end_date=_pick(data, "end_date", "endDate"),
            created_at=_pick(data, "created_at", "createdAt"),
            last_modified=_pick(data, "last_modified", "lastModified"),
        )


@dataclass
class ProjectEstimate:
    infrastructure_total: float
    manual_labor_total: float
    auto_staffing: StaffingStats
    auto_staffing_cost: float
    labor_total: float
    grand_total: float
    total_mandays: float
    breakdown_by_item: List[Dict[str, Any]] = field(default_factory=list)
    breakdown_by_role: Dict[str, Any] = field(default_factory=dict)
