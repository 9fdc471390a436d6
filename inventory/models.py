import uuid
from sqlalchemy import Column, Integer, String, DateTime, Float, Text
from inventory.database import Base
from inventory.time_utils import utcnow


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), default="user")
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)


class Server(Base):
    __tablename__ = "servers"

    id = Column(String(32), primary_key=True, default=new_id)
    project_name = Column(String(200), nullable=False)
    project_purpose = Column(String(500), nullable=False)
    environment = Column(String(50), nullable=False)
    vm_name = Column(String(200), nullable=False)
    cpu = Column(Integer, nullable=False)
    ram = Column(Integer, nullable=False)
    storage = Column(Integer, nullable=False)
    total_cost = Column(Float, nullable=False)
    os_version = Column(String(100), nullable=False)
    ip = Column(String(100), nullable=False)
    hostname = Column(String(200), nullable=False)
    username = Column(String(200), nullable=False)
    password = Column(String(500), nullable=False)  # Encrypted
    server_no = Column(String(100), nullable=False)
    created_by = Column(String(100), nullable=False)
    remarks = Column(Text, default="")
    delete_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
