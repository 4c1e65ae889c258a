"""
Company and user administration service
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import Company, Profile
from app.services.auth_service import AuthError, AuthService, temporary_password
from app.services.repositories import RowRepo

logger = logging.getLogger(__name__)


class CompanyService:
    """Service for the signed-in user's company and its users"""

    @staticmethod
    def get_company(db: Session, user: Profile) -> Optional[Company]:
        if not user.company_id:
            return None
        return RowRepo.get(db, Company, user.company_id)

    @staticmethod
    def list_users(db: Session, company_id: str) -> List[Profile]:
        return db.query(Profile).filter(
            Profile.company_id == company_id
        ).order_by(Profile.created_at.desc()).all()

    @staticmethod
    def create_company(db: Session, user: Profile, values: Dict[str, Any]) -> Company:
        """Create a company and make its creator the admin"""
        company = RowRepo.insert(db, Company, values)
        RowRepo.update(db, user, {"company_id": company.id, "role": "admin"})
        logger.info(f"User {user.email} created company {company.name}")
        return company

    @staticmethod
    def update_company(db: Session, company: Company, values: Dict[str, Any]) -> Company:
        return RowRepo.update(db, company, values)

    @staticmethod
    def get_company_user(db: Session, company_id: str, user_id: str) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.id == user_id, Profile.company_id == company_id).first()

    @staticmethod
    def create_user(db: Session, company_id: str, email: str, full_name: str, role: str) -> Profile:
        """Add a user to the company with a random temporary password"""
        if db.query(Profile).filter(Profile.email == email).first():
            raise AuthError("This email is already registered in the system.")
        return AuthService.create_user(
            db,
            email=email,
            password=temporary_password(),
            full_name=full_name,
            role=role,
            company_id=company_id,
        )

    @staticmethod
    def update_user(db: Session, user: Profile, values: Dict[str, Any]) -> Profile:
        return RowRepo.update(db, user, values)

    @staticmethod
    def delete_user(db: Session, user: Profile) -> None:
        AuthService.delete_user(db, user)
