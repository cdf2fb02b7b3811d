import logging
import os
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Depends, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from database import db, create_document, get_documents, get_document_by_id
from farm_capacity import FarmSetupError, land_size_in_cents, plan_farm_setup
from schemas import FarmSetup, FarmSetupRequest, SaveFarmSetupRequest, Session

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10

app = FastAPI(title="Farm Setup Planner API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FarmSetupError)
async def farm_setup_error_handler(request: Request, exc: FarmSetupError):
    logger.warning("Rejected farm setup request %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    # a missing body is reported at ("body",) with no field path
    fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) or "body" for err in exc.errors())
    logger.warning("Malformed request %s: %s", request.url.path, fields)
    return JSONResponse(status_code=400, content={"success": False, "message": f"Invalid request fields: {fields}"})


# Utility helpers

def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def get_collection(name: str):
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db[name]


def serialize_setup(doc: dict) -> dict:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id")) if "_id" in doc else None
    for key in ("created_at", "updated_at"):
        if isinstance(doc.get(key), datetime):
            doc[key] = doc[key].isoformat()
    return doc


# Sessions are issued by the auth service; here they are only looked up
async def require_session(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authorized to access this route")
    token = authorization.split(" ", 1)[1].strip()
    sessions = get_collection("session")
    doc = sessions.find_one({"token": token})
    if not doc:
        raise HTTPException(status_code=401, detail="Invalid token")
    session = Session(**doc)
    if session.expires_at < now_utc():
        raise HTTPException(status_code=401, detail="Session expired")
    return session.farmer_id


@app.get("/")
def root():
    return {"name": "Farm Setup Planner API", "status": "ok"}


@app.get("/test")
def test_database():
    try:
        collections = db.list_collection_names() if db is not None else []
        return {
            "backend": "✅ Running",
            "database": "✅ Connected" if db is not None else "❌ Not available",
            "collections": collections[:10],
        }
    except Exception as e:
        logger.error("Database check failed: %s", e)
        return {"backend": "✅ Running", "database": f"❌ Error: {str(e)}"}


# Farm setup planning

@app.post("/api/farm-setup/calculate")
def calculate_farm_setup(payload: FarmSetupRequest, farmer_id: str = Depends(require_session)):
    plan = plan_farm_setup(payload.landSize, payload.farmingTypes)
    return {"success": True, "data": plan}


@app.post("/api/farm-setup", status_code=201)
def save_farm_setup(payload: SaveFarmSetupRequest, farmer_id: str = Depends(require_session)):
    plan = plan_farm_setup(land_size_in_cents(payload.landSize, payload.landUnit), payload.farmingTypes)
    setup = FarmSetup(
        farmer_id=farmer_id,
        land_size=payload.landSize,
        land_unit=payload.landUnit,
        land_size_cents=plan["landSize"],
        farming_types=plan["farmingTypes"],
        calculated_capacity=plan["calculatedCapacity"],
        area_breakdown=plan["areaBreakdown"],
        constraints=plan["constraints"],
        profit_estimate=plan["profitEstimate"],
        seasonal_recommendations=plan["seasonalRecommendations"],
        waste_reuse_flow=plan["wasteReuseFlow"],
        water_requirement=plan["waterRequirement"],
        maintenance_level=plan["maintenanceLevel"],
        visualization_prompt=plan["visualizationPrompt"],
        warnings=plan["warnings"],
        season=plan["currentSeason"],
    )
    setup_id = create_document("farmsetup", setup)
    logger.info("Saved farm setup %s for farmer %s", setup_id, farmer_id)
    return {"success": True, "data": {"id": setup_id, **setup.model_dump()}}


@app.get("/api/farm-setup/history")
def get_farm_setup_history(farmer_id: str = Depends(require_session)):
    setups = get_documents(
        "farmsetup", {"farmer_id": farmer_id}, limit=HISTORY_LIMIT, sort=[("created_at", -1)]
    )
    return {"success": True, "data": [serialize_setup(s) for s in setups]}


@app.get("/api/farm-setup/{setup_id}")
def get_farm_setup(setup_id: str, farmer_id: str = Depends(require_session)):
    setup = get_document_by_id("farmsetup", setup_id)
    if not setup:
        return JSONResponse(status_code=404, content={"success": False, "message": "Farm setup not found"})
    if setup.get("farmer_id") != farmer_id:
        return JSONResponse(
            status_code=403, content={"success": False, "message": "Not authorized to access this setup"}
        )
    return {"success": True, "data": serialize_setup(setup)}
