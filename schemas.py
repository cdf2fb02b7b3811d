"""
Database Schemas for the Farm Setup Planner

Each Pydantic model corresponds to a MongoDB collection (lowercased class name).
Request bodies keep the camelCase field names used by the web client.
"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime


class FarmSetupRequest(BaseModel):
    # Optional so missing values get the planner's own 400 message
    landSize: Optional[float] = Field(None, description="Land size in cents (10 < size < 100)")
    farmingTypes: Optional[List[str]] = Field(None, description="hen|goat|cow|fish")


class SaveFarmSetupRequest(FarmSetupRequest):
    landUnit: str = Field("cents", pattern="^(cents|acres)$", description="cents|acres")


class Session(BaseModel):
    farmer_id: str
    token: str
    created_at: datetime
    expires_at: datetime


class FarmSetup(BaseModel):
    farmer_id: str = Field(..., description="Owner of the saved plan")
    land_size: float = Field(..., gt=0, description="Land size as submitted, in land_unit")
    land_unit: str = Field("cents", description="cents|acres")
    land_size_cents: float = Field(..., gt=10, lt=100, description="Land size the plan was computed for")
    farming_types: List[str] = Field(default_factory=list)
    calculated_capacity: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    area_breakdown: Dict[str, Any] = Field(default_factory=dict)
    constraints: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    profit_estimate: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    seasonal_recommendations: List[Dict[str, str]] = Field(default_factory=list)
    waste_reuse_flow: Dict[str, Any] = Field(default_factory=dict)
    water_requirement: Dict[str, Any] = Field(default_factory=dict)
    maintenance_level: str = Field(..., description="low|medium|high")
    visualization_prompt: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    season: Optional[str] = None
