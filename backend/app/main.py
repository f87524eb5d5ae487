from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import List, Dict, Optional
from dataclasses import asdict
from urllib.parse import quote
import logging
import re
import unicodedata
import uvicorn

from .settings import load_env_files, load_settings

# Load environment variables from a local .env if present
load_env_files()
settings = load_settings()

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Import our services
from .services.calculation_service import CalculationService
from .services.config_parser import parse_config
from .services.data_service import DataService, map_legacy_role
from .services.deployment_service import generate_deployment_script
from .services.quotation_service import QuotationService
from .models import (
    InfrastructureItem, LaborItem, LaborPriceTable, Project, UnitPriceTable,
)

API_VERSION = "1.0.0"

app = FastAPI(title=settings.api_title, version=API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services
calculation_service = CalculationService()
data_service = DataService(prices_file=settings.prices_file)
quotation_service = QuotationService(calculation_service)


@app.get("/")
def read_root():
    return {"message": f"{settings.api_title} v{API_VERSION} is running", "status": "ready"}


@app.get("/health")
def health_check():
    return {"status": "healthy", "version": API_VERSION}


@app.get("/api/v1/roles")
def get_roles():
    """Get all labor roles with their default daily rate"""
    return data_service.get_all_roles()


@app.get("/api/v1/storage-tiers")
def get_storage_tiers():
    return data_service.get_storage_tiers()


@app.get("/api/v1/prices/defaults")
def get_default_prices():
    return {
        "unit_prices": data_service.default_unit_prices().to_dict(),
        "labor_prices": data_service.default_labor_prices().to_dict(),
    }


@app.get("/api/v1/projects/sample")
def get_sample_project():
    """Starter project with default price tables"""
    return asdict(data_service.sample_project())


@app.get("/api/v1/roles/map")
def map_role(label: str = ""):
    """Map a free-text role label from imported rows onto a known role"""
    role = map_legacy_role(label)
    return {"label": label, "id": role.name, "name": role.value}


class InfrastructureItemRequest(BaseModel):
    id: str = ""
    category: str = "AppServer"
    operating_system: str = ""
    configuration_text: str = ""
    quantity: Optional[int] = 1
    display_name: str = ""
    note: str = ""
    storage_tier: str = "diskSanAllFlash"
    international_bandwidth_mbps: Optional[float] = 0.0
    internal_bandwidth_mbps: Optional[float] = 0.0


class LaborItemRequest(BaseModel):
    id: str = ""
    task_name: str = ""
    role: str
    mandays: Optional[float] = 0.0
    description: str = ""
    status: Optional[str] = None
    priority: Optional[str] = None
    assignee: Optional[str] = None
    due_date: Optional[str] = None


class ProjectRequest(BaseModel):
    id: str = ""
    name: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    infrastructure: List[InfrastructureItemRequest] = []
    labors: List[LaborItemRequest] = []
    unit_prices: Optional[Dict[str, float]] = None
    labor_prices: Optional[Dict[str, float]] = None


class ParseRequest(BaseModel):
    configuration_text: str = ""


class ItemCostRequest(BaseModel):
    item: InfrastructureItemRequest
    prices: Optional[Dict[str, float]] = None


class LaborCostRequest(BaseModel):
    item: LaborItemRequest
    prices: Optional[Dict[str, float]] = None


class StaffingRequest(BaseModel):
    labors: List[LaborItemRequest] = []
    labor_prices: Optional[Dict[str, float]] = None


class EstimateRequest(BaseModel):
    project: ProjectRequest


def _unit_prices(prices: Optional[Dict[str, float]]) -> UnitPriceTable:
    if prices is None:
        return data_service.default_unit_prices()
    return UnitPriceTable.from_dict(prices)


def _labor_prices(prices: Optional[Dict[str, float]]) -> LaborPriceTable:
    if prices is None:
        return data_service.default_labor_prices()
    return LaborPriceTable.from_dict(prices)


def _to_project(req: ProjectRequest) -> Project:
    if not req.name.strip():
        raise HTTPException(status_code=400, detail="Project name is required")
    return Project(
        id=req.id,
        name=req.name,
        start_date=req.start_date,
        end_date=req.end_date,
        infrastructure=[InfrastructureItem.from_dict(i.model_dump()) for i in req.infrastructure],
        labors=[LaborItem.from_dict(l.model_dump()) for l in req.labors],
        unit_prices=_unit_prices(req.unit_prices),
        labor_prices=_labor_prices(req.labor_prices),
    )


def _download_headers(project_name: str, suffix: str) -> Dict[str, str]:
    """Content-Disposition with an ASCII fallback name plus the UTF-8 ``filename*`` form"""
    stem = re.sub(r"\s+", "_", project_name.strip())
    stem = re.sub(r'["\\\x00-\x1f]', "", stem)
    ascii_stem = unicodedata.normalize("NFKD", stem).encode("ascii", "ignore").decode("ascii")
    filename = (stem or "project") + suffix
    fallback = (ascii_stem or "project") + suffix
    return {
        "Content-Disposition": f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    }


@app.post("/api/v1/config/parse")
def parse_configuration(req: ParseRequest):
    return asdict(parse_config(req.configuration_text))


@app.post("/api/v1/infrastructure/cost")
def infrastructure_cost(req: ItemCostRequest):
    item = InfrastructureItem.from_dict(req.item.model_dump())
    result = calculation_service.calculate_item_cost(item, _unit_prices(req.prices))
    return asdict(result)


@app.post("/api/v1/labor/cost")
def labor_cost(req: LaborCostRequest):
    item = LaborItem.from_dict(req.item.model_dump())
    return {"cost": calculation_service.calculate_labor_cost(item, _labor_prices(req.prices))}


@app.post("/api/v1/staffing")
def auto_staffing(req: StaffingRequest):
    labors = [LaborItem.from_dict(l.model_dump()) for l in req.labors]
    stats = calculation_service.calculate_auto_staffing(labors)
    cost = calculation_service.price_auto_staffing(stats, _labor_prices(req.labor_prices))
    return {"staffing": asdict(stats), "auto_staffing_cost": cost}


@app.post("/api/v1/estimate")
def estimate(req: EstimateRequest):
    """Project totals with per-item and per-role breakdowns"""
    project = _to_project(req.project)
    warnings = calculation_service.validate_project(project)
    result = calculation_service.calculate_project_estimate(project)
    if warnings:
        logger.info("Estimate for %s produced %d warning(s)", project.name, len(warnings))
    return JSONResponse({"warnings": warnings, "estimate": asdict(result)})


@app.post("/api/v1/quotation")
def quotation(req: EstimateRequest):
    project = _to_project(req.project)
    return quotation_service.build_quotation(project)


@app.post("/api/v1/deployment-script")
def deployment_script(req: EstimateRequest):
    """Return a provisioning shell script as a download"""
    project = _to_project(req.project)
    script = generate_deployment_script(project)

    return StreamingResponse(
        iter([script.encode("utf-8")]),
        media_type="text/x-shellscript",
        headers=_download_headers(project.name, "_deploy.sh"),
    )


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
