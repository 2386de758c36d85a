import logging
from perfmgmt.core.config import settings
from perfmgmt.database import SessionLocal
from perfmgmt.models.company import Company
from perfmgmt.models.user import User, UserRole
from perfmgmt.services import auth as auth_service

logger = logging.getLogger(__name__)


def init_system_data():
    """
    Seeds a default company and SUPER_ADMIN on an empty database.
    Runs only when BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD are set.
    """
    if not (settings.bootstrap_admin_email and settings.bootstrap_admin_password):
        logger.info("System bootstrap skipped: no bootstrap admin configured.")
        return

    db = SessionLocal()
    try:
        company_count = db.query(Company).count()
        if company_count == 0:
            logger.info("Running startup initialization...")

            company = Company(name="Default Company", code="DEFAULT", is_active=True)
            db.add(company)
            db.flush()

            admin_email = settings.bootstrap_admin_email
            existing_admin = db.query(User).filter(User.email == admin_email).first()
            if not existing_admin:
                admin_user = User(
                    username=admin_email.split("@")[0],
                    email=admin_email,
                    hashed_password=auth_service.get_password_hash(settings.bootstrap_admin_password),
                    role=UserRole.SUPER_ADMIN,
                    company_id=company.id,
                    is_active=True,
                )
                db.add(admin_user)
                logger.info(f"Created bootstrap admin: {admin_email}")

            db.commit()
            logger.info("System bootstrapped with the default company.")
        else:
            logger.info(f"System initialization check: {company_count} company(ies) found.")

    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        db.close()
