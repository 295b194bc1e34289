from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, Optional
from datetime import datetime
from facilityhub.models.company_role import PERMISSION_FLAGS
from facilityhub.models.user import UserRole


def _known_flags(value: Optional[Dict[str, bool]]) -> Optional[Dict[str, bool]]:
    if value is None:
        return value
    unknown = sorted(set(value) - set(PERMISSION_FLAGS))
    if unknown:
        raise ValueError(f"Unknown permissions: {', '.join(unknown)}")
    return value


class CompanyRoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: Dict[str, bool] = Field(default_factory=dict)

    @field_validator("permissions")
    @classmethod
    def _check_permissions(cls, value):
        return _known_flags(value)


class CompanyRoleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: Optional[Dict[str, bool]] = None

    @field_validator("permissions")
    @classmethod
    def _check_permissions(cls, value):
        return _known_flags(value)


class CompanyRoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    name: str
    description: Optional[str] = None
    permissions: Dict[str, bool]
    created_at: Optional[datetime] = None


class RoleAssignment(BaseModel):
    user_id: int
    role_id: int


class RoleMember(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: Optional[str] = None
    role: UserRole
