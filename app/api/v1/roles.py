"""Role records; every route requires the admin role."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import DbSession, require_admin
from app.core.errors import NotFound
from app.models import Role
from app.schemas.common import ApiResponse, EmptyData
from app.schemas.role import RoleCreate, RoleData, RoleOut, RolesData, RoleUpdate
from app.services import roles as role_service

router = APIRouter(dependencies=[Depends(require_admin)])


def _get_role_or_404(db: Session, role_id: int) -> Role:
    role = role_service.get_role(db, role_id)
    if role is None:
        raise NotFound("Role not found")
    return role


@router.get("", response_model=ApiResponse[RolesData])
def list_roles(db: DbSession) -> ApiResponse[RolesData]:
    roles = role_service.list_roles(db)
    return ApiResponse(
        message="Roles retrieved successfully",
        data=RolesData(roles=[RoleOut.model_validate(r) for r in roles]),
    )


@router.get("/{role_id}", response_model=ApiResponse[RoleData])
def get_role(role_id: int, db: DbSession) -> ApiResponse[RoleData]:
    role = _get_role_or_404(db, role_id)
    return ApiResponse(
        message="Role retrieved successfully",
        data=RoleData(role=RoleOut.model_validate(role)),
    )


@router.post("", response_model=ApiResponse[RoleData], status_code=status.HTTP_201_CREATED)
def create_role(body: RoleCreate, db: DbSession) -> ApiResponse[RoleData]:
    role = role_service.create_role(db, body.name, body.description)
    return ApiResponse(
        message="Role created successfully",
        data=RoleData(role=RoleOut.model_validate(role)),
    )


@router.patch("/{role_id}", response_model=ApiResponse[RoleData])
def update_role(role_id: int, body: RoleUpdate, db: DbSession) -> ApiResponse[RoleData]:
    role = _get_role_or_404(db, role_id)
    role = role_service.update_role(db, role, body.model_dump(exclude_unset=True))
    return ApiResponse(
        message="Role updated successfully",
        data=RoleData(role=RoleOut.model_validate(role)),
    )


@router.delete("/{role_id}", response_model=ApiResponse[EmptyData])
def delete_role(role_id: int, db: DbSession) -> ApiResponse[EmptyData]:
    """Delete a role; users holding it are kept with no role."""
    role = _get_role_or_404(db, role_id)
    role_service.delete_role(db, role)
    return ApiResponse(message="Role deleted successfully", data=EmptyData())
