from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import bcrypt
import logging
import os
import secrets

from database import get_db
from models import User, Account, PasswordReset, UserRole
from errors import (
    ValidationError, DuplicateEmail, Unauthorized, Forbidden, NotFound,
    InvalidToken, TokenExpired
)

logger = logging.getLogger(__name__)

# JWT Configuration
SECRET_KEY = os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 480))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

# Password reset
RESET_TOKEN_EXPIRE_MINUTES = 60
# No mailer is wired up; only development setups hand the token back to the caller
RESET_TOKEN_IN_RESPONSE = os.getenv("RESET_TOKEN_IN_RESPONSE", "false").lower() in ("1", "true", "yes")

security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash using bcrypt.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The bcrypt hashed password to check against

    Returns:
        bool: True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError as e:
        logger.error(f"Error verifying password: {e}")
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt with salt.

    Args:
        password: The plain text password to hash

    Returns:
        str: The bcrypt hashed password
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def verify_token(token: str) -> Optional[int]:
    """Verify a JWT token and return the user id."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            return None
        return int(subject)
    except (JWTError, ValueError):
        return None


def issue_token_for(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "role": user.role.value})


# Dependencies

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to a user."""
    if credentials is None:
        raise Unauthorized("Could not validate credentials")

    user_id = verify_token(credentials.credentials)
    if user_id is None:
        raise Unauthorized("Could not validate credentials")

    user = db.get(User, user_id)
    if user is None:
        raise Unauthorized("Could not validate credentials")
    return user


def require_roles(*roles: UserRole):
    """Dependency factory restricting an endpoint to the given roles."""
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise Forbidden("You do not have permission to perform this action")
        return current_user
    return checker


require_officer = require_roles(UserRole.REGIONAL_OFFICER, UserRole.MASTER_ADMIN)
require_master_admin = require_roles(UserRole.MASTER_ADMIN)


def ensure_branch_access(user: User, branch_id: Optional[int]):
    """Regional officers may only act on their own branch."""
    if user.role == UserRole.MASTER_ADMIN:
        return
    if user.role == UserRole.REGIONAL_OFFICER and user.branch_id is not None and user.branch_id == branch_id:
        return
    raise Forbidden("You can only manage your own branch")


# Account operations

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def register_user(db: Session, email: str, password: str, name: str) -> User:
    """Create a user and their savings account in one transaction."""
    if get_user_by_email(db, email):
        raise DuplicateEmail()

    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        name=name,
        role=UserRole.USER
    )
    user.account = Account(balance=0.0, auto_pay=False)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail()
    db.refresh(user)

    logger.info(f"Registered user {user.id} ({user.email})")
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Failed login for {email}")
        raise Unauthorized("Invalid credentials")
    logger.info(f"User {user.id} logged in")
    return user


def update_profile(
    db: Session,
    user_id: int,
    current_password: str,
    name: str,
    email: str,
    phone: Optional[str] = None,
    bio: Optional[str] = None,
    photo: Optional[str] = None,
    new_password: Optional[str] = None
) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    if not verify_password(current_password, user.hashed_password):
        raise Unauthorized("Incorrect current password")

    if email != user.email:
        taken = db.query(User).filter(User.email == email, User.id != user_id).first()
        if taken:
            raise DuplicateEmail("Email already taken")

    user.name = name
    user.email = email
    user.phone = phone
    user.bio = bio
    user.photo = photo
    if new_password:
        user.hashed_password = get_password_hash(new_password)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail("Email already taken")
    db.refresh(user)
    return user


def create_password_reset(db: Session, email: str) -> PasswordReset:
    """Issue a single-use reset token valid for one hour."""
    if not get_user_by_email(db, email):
        raise NotFound("Email not found")

    reset = PasswordReset(
        email=email,
        reset_token=secrets.token_urlsafe(32),
        expires_at=datetime.utcnow() + timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES),
        is_used=False
    )
    db.add(reset)
    db.commit()
    db.refresh(reset)

    logger.info(f"Password reset requested for {email}")
    return reset


def reset_password(db: Session, token: str, new_password: str):
    """Consume a reset token. Tokens work exactly once."""
    reset = db.query(PasswordReset).filter(
        PasswordReset.reset_token == token,
        PasswordReset.is_used == False  # noqa: E712
    ).first()
    if not reset:
        raise InvalidToken()

    if reset.expires_at < datetime.utcnow():
        raise TokenExpired()

    user = get_user_by_email(db, reset.email)
    if user is None:
        raise InvalidToken()

    if len(new_password) < 4:
        raise ValidationError("Password must be at least 4 characters")

    user.hashed_password = get_password_hash(new_password)
    reset.is_used = True
    db.commit()

    logger.info(f"Password reset completed for {reset.email}")
