from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    user_type: str
    company_name: Optional[str] = None
    company_website: Optional[str] = None
    company_phone: Optional[str] = None
    company_address: Optional[str] = None
    company_city: Optional[str] = None
    company_state: Optional[str] = None
    company_zip_code: Optional[str] = None
    company_country: Optional[str] = None
    dot_number: Optional[str] = None
    mc_number: Optional[str] = None
    equipment_types: List[str] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSettingsUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    company_name: Optional[str] = None
    company_website: Optional[str] = None
    company_phone: Optional[str] = None
    company_address: Optional[str] = None
    company_city: Optional[str] = None
    company_state: Optional[str] = None
    company_zip_code: Optional[str] = None
    company_country: Optional[str] = None
    equipment_types: Optional[List[str]] = None


class SignupStepRequest(BaseModel):
    """One wizard step: the token from the previous step (none for the first) plus this step's fields."""
    token: Optional[str] = None
    data: Dict[str, Any] = {}


class SignupStepResponse(BaseModel):
    step: str
    token: Optional[str] = None
    user: Optional[UserResponse] = None
