"""
Create a demo company with an admin account.

    python -m scripts.seed_admin admin@example.com "Demo Facilities"
"""
import sys
from facilityhub.database import SessionLocal, init_db
from facilityhub.models.company import Company
from facilityhub.models.user import User, UserRole
from facilityhub.services import auth as auth_service

DEFAULT_PASSWORD = "ChangeMe123!"


def seed(admin_email: str = "admin@example.com", company_name: str = "Demo Facilities"):
    init_db()
    db = SessionLocal()
    try:
        company = db.query(Company).filter(Company.name == company_name).first()
        if not company:
            company = Company(name=company_name, is_active=False)
            db.add(company)
            db.flush()
            print(f"Created company: {company.name}")

        admin = db.query(User).filter(User.email == admin_email).first()
        if not admin:
            admin = User(
                email=admin_email,
                hashed_password=auth_service.get_password_hash(DEFAULT_PASSWORD),
                role=UserRole.ADMIN,
                full_name="Admin User",
                company_id=company.id,
                is_active=True
            )
            db.add(admin)
            db.flush()
            company.owner_id = admin.id
            print(f"Admin user {admin_email} created with password '{DEFAULT_PASSWORD}'")
        else:
            print(f"Admin user {admin_email} already exists.")
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed(*sys.argv[1:3])
