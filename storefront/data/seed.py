# storefront/data/seed.py
from storefront.data.database import SessionLocal, init_db
from storefront.domain.enums import Role
from storefront.repos.user_repo import UserRepo
from storefront.services.auth_service import AuthService
from storefront.utils.settings import ADMIN_EMAIL, ADMIN_PASSWORD
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def seed_admin(email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD) -> bool:
    """Creates the admin account once. Returns False when it already exists."""
    if not password:
        raise ValueError("ADMIN_PASSWORD must be set to seed the admin account")

    db = SessionLocal()
    try:
        #not forcing: only seed if missing
        if UserRepo(db).get_by_email(email.strip().lower()):
            logger.info(f"Admin {email} already exists")
            return False

        AuthService(db).register(email, password, name="Administrator", role=Role.ADMIN)
        logger.info(f"Admin {email} created")
        return True
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
    seed_admin()
