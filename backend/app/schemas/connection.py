from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, HttpUrl, field_validator


class ConnectionParams(BaseModel):
    """Plaintext parameters used to reach an Odoo instance."""
    base_url: HttpUrl
    database: str
    username: str
    api_key: str

    @field_validator("database", "username", "api_key")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @property
    def url(self) -> str:
        return str(self.base_url).rstrip("/")


class ConnectionCreate(ConnectionParams):
    name: str
    odoo_version: Optional[str] = None
    company_ids: Optional[List[int]] = None  # Restrict syncs to these res.company ids


class ConnectionInDB(BaseModel):
    id: int
    name: str
    base_url: str
    database: str
    username: str
    odoo_version: Optional[str] = None
    company_ids: Optional[List[int]] = None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class Company(BaseModel):
    id: int
    name: str
    currency: Optional[str] = None


class ConnectionTestResult(BaseModel):
    user_id: int
    companies: List[Company]
