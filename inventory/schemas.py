from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional
from inventory.time_utils import to_utc


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: str = "user"


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    role: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value):
        return to_utc(value)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    token: str
    user: UserOut


class ServerCreate(BaseModel):
    """Full server record as supplied by clients.

    Every required field must be present and non-empty; numbers must be
    positive. PUT reuses this model, so updates replace the whole record.
    """

    project_name: str = Field(min_length=1, max_length=200)
    project_purpose: str = Field(min_length=1, max_length=500)
    environment: str = Field(min_length=1, max_length=50)
    vm_name: str = Field(min_length=1, max_length=200)
    cpu: int = Field(gt=0)
    ram: int = Field(gt=0)
    storage: int = Field(gt=0)
    total_cost: float = Field(gt=0)
    os_version: str = Field(min_length=1, max_length=100)
    ip: str = Field(min_length=1, max_length=100)
    hostname: str = Field(min_length=1, max_length=200)
    username: str = Field(min_length=1, max_length=200)
    password: str = Field(min_length=1)
    server_no: str = Field(min_length=1, max_length=100)
    created_by: str = Field(min_length=1, max_length=100)
    remarks: Optional[str] = ""
    delete_date: Optional[datetime] = None


class ServerUpdate(ServerCreate):
    pass


class ServerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_name: str
    project_purpose: str
    environment: str
    vm_name: str
    cpu: int
    ram: int
    storage: int
    total_cost: float
    os_version: str
    ip: str
    hostname: str
    username: str
    server_no: str
    created_by: str
    remarks: Optional[str] = ""
    delete_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("delete_date", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value):
        return to_utc(value)


class ServerList(BaseModel):
    servers: List[ServerOut]
    total: int
    page: int
    limit: int


class Message(BaseModel):
    message: str
