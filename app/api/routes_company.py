"""
Company and user administration API routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models import Profile
from app.schemas.company import (
    CompanyCreate, CompanyUpdate, CompanyResponse,
    UserCreate, UserUpdate, RoleUpdate, UserResponse,
)
from app.services.auth_service import AuthError
from app.services.company_service import CompanyService
from app.services.dashboard_service import DashboardService
from app.utils.responses import success_response, error_response, conflict_response, not_found_error
from app.utils.security import get_current_user, require_company, require_user_manager

router = APIRouter()

def _user_data(user: Profile) -> dict:
    return UserResponse.model_validate(user).model_dump()

@router.get("")
async def get_company(
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Current user's company and its users"""
    company = CompanyService.get_company(db, user)
    if not company:
        return success_response(
            message="No company set up yet",
            data={"company": None, "users": [], "role": user.role}
        )

    users = CompanyService.list_users(db, company.id)
    return success_response(
        message="Company retrieved",
        data={
            "company": CompanyResponse.model_validate(company).model_dump(),
            "users": [_user_data(u) for u in users],
            "role": user.role,
            "can_manage_users": user.can_manage_users,
        }
    )

@router.post("")
async def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Create a company; the creator becomes its admin"""
    if user.company_id:
        return error_response(message="You already belong to a company", error_code="company_exists", status_code=409)

    company = CompanyService.create_company(db, user, payload.model_dump())
    return success_response(
        message="Your company has been created successfully.",
        data=CompanyResponse.model_validate(company).model_dump(),
        status_code=201
    )

@router.put("")
async def update_company(
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    company = CompanyService.get_company(db, user)
    if not company:
        raise not_found_error("Company")

    company = CompanyService.update_company(db, company, payload.model_dump(exclude_unset=True))
    return success_response(
        message="Your company information has been updated successfully.",
        data=CompanyResponse.model_validate(company).model_dump()
    )

@router.post("/users")
async def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_user_manager)
):
    """Add a user to the company"""
    try:
        new_user = CompanyService.create_user(db, user.company_id, payload.email, payload.full_name, payload.role)
    except AuthError as e:
        return conflict_response(e, "create_user_failed")

    return success_response(
        message=f"{new_user.full_name} has been added to your company.",
        data=_user_data(new_user),
        status_code=201
    )

@router.patch("/users/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_user_manager)
):
    target = CompanyService.get_company_user(db, user.company_id, user_id)
    if not target:
        raise not_found_error("User")

    target = CompanyService.update_user(db, target, payload.model_dump(exclude_unset=True, exclude_none=True))
    return success_response(message="User has been updated successfully.", data=_user_data(target))

@router.patch("/users/{user_id}/role")
async def update_user_role(
    user_id: str,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_user_manager)
):
    target = CompanyService.get_company_user(db, user.company_id, user_id)
    if not target:
        raise not_found_error("User")

    target = CompanyService.update_user(db, target, {"role": payload.role})
    return success_response(message="User role has been updated successfully.", data=_user_data(target))

@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_user_manager)
):
    target = CompanyService.get_company_user(db, user.company_id, user_id)
    if not target:
        raise not_found_error("User")
    if target.id == user.id:
        return error_response(message="You cannot delete your own account", error_code="self_delete", status_code=400)

    CompanyService.delete_user(db, target)
    return success_response(message="User has been deleted successfully.", data={"deleted_user_id": user_id})

@router.get("/dashboard")
async def dashboard_stats(
    db: Session = Depends(get_db),
    user: Profile = Depends(require_company)
):
    return success_response(
        message="Dashboard statistics",
        data=DashboardService.get_stats(db, user.company_id)
    )
