from utils.hashing import verify_password, get_password_hash
from models.users import User
from sqlalchemy.orm import Session
from fastapi import HTTPException
from starlette import status
from utils.logger import get_logger

logger = get_logger(__name__)

class AuthService:

    @staticmethod
    def create_user(db: Session, email: str, password: str, role: str = "admin",
                    is_verified: bool = True, first_name: str = None, last_name: str = None) -> User:
        """
        Creates a back-office account. Used by the create_admin command.
        """
        email = email.lower().strip()
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.warning("Account creation with existing email", extra={"email": email})
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        model = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            hashed_password=get_password_hash(password),
            role=role,
            is_verified=is_verified,
        )

        db.add(model)
        db.commit()
        db.refresh(model)

        logger.info("Account created", extra={"user_id": model.id, "role": role})
        return model

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> User:
        user = db.query(User).filter(User.email == email.lower().strip()).first()

        if not user:
            logger.warning("Login failed - user not found", extra={"email": email})
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate user.")

        if not user.is_active:
            logger.warning("Login failed - inactive account", extra={"email": email})
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate user.")

        if not verify_password(password, user.hashed_password):
            logger.warning(
                "Login failed - invalid password",
                extra={"user_id": user.id, "email": email}
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate user.")

        if not user.is_verified:
            logger.warning(
                "Login attempt with unverified email",
                extra={"user_id": user.id, "email": email}
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
            detail="Email not verified.")

        logger.debug("User authenticated successfully", extra={"user_id": user.id})
        return user

    @staticmethod
    def get_active_user_by_id(db: Session, user_id: int) -> User | None:
        return db.query(User).filter(User.id == user_id, User.is_active == True).one_or_none()
