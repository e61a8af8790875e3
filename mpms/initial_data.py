# mpms/initial_data.py

import logging
from typing import Optional

from sqlalchemy.orm import Session

from mpms.core.enums import Role
from mpms.core.exceptions import ConflictError
from mpms.core.settings import Settings, get_settings
from mpms.crud.user import create_user, get_user_by_email
from mpms.database import build_engine, build_session_factory
from mpms.models import Base, User

logger = logging.getLogger("MPMS.InitialData")


def create_initial_admin_user(db: Session, settings: Settings) -> Optional[User]:
    """
    Создаёт первого администратора из FIRST_ADMIN_* (если его ещё нет).
    """
    email = settings.FIRST_ADMIN_EMAIL
    password = settings.FIRST_ADMIN_PASSWORD
    if not email or not password:
        logger.warning("FIRST_ADMIN_EMAIL / FIRST_ADMIN_PASSWORD are not set. Skipping admin creation.")
        return None

    admin_user = get_user_by_email(db, email)
    if admin_user:
        logger.info(f"Admin user '{admin_user.email}' already exists. No action taken.")
        return admin_user

    logger.info(f"Admin user '{email}' not found. Creating...")
    try:
        admin_user = create_user(
            db,
            {"name": settings.FIRST_ADMIN_NAME, "email": email, "password": password, "role": Role.ADMIN},
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        )
    except ConflictError as e:
        logger.error(f"Failed to create admin user: {e.message}")
        return get_user_by_email(db, email)
    logger.info(f"Admin user '{admin_user.email}' created successfully.")
    return admin_user


def init_db(settings: Settings) -> None:
    """Создаёт таблицы и первого администратора."""
    engine = build_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    db = build_session_factory(engine)()
    try:
        create_initial_admin_user(db, settings)
    finally:
        db.close()
        engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger.info("Initializing database and initial data (admin user)...")
    init_db(get_settings())
    logger.info("Finished initial data setup.")


if __name__ == "__main__":
    from dotenv import load_dotenv
    load_dotenv()

    main()
