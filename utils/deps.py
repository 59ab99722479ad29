from core.database import SessionLocal
from dataclasses import dataclass
from typing import Annotated
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from starlette import status
from core.config import settings
from models.enums import UserRole


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_dependency = Annotated[Session, Depends(get_db)]


@dataclass(frozen=True)
class Actor:
    """Who is acting on the order core. Built once per request from the token."""
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def get_current_actor(token: Annotated[str, Depends(oauth2_scheme)]) -> Actor:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id = payload.get("id")
        user_role = payload.get("role")
        token_type = payload.get("type")

        if user_id is None or user_role is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                                detail="Could not validate credentials.")

        if token_type != "access":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                                detail="Invalid token type. Access token required.")

        return Actor(user_id=int(user_id), role=UserRole(user_role))

    except (JWTError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Could not validate credentials.")


def require_roles(*roles: UserRole):
    def checker(actor: Annotated[Actor, Depends(get_current_actor)]) -> Actor:
        if actor.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="Not allowed for this role")
        return actor
    return checker


actor_dependency = Annotated[Actor, Depends(get_current_actor)]
customer_dependency = Annotated[Actor, Depends(require_roles(UserRole.CUSTOMER))]
# Customers may only cancel; OrderService enforces the finer rules
status_actor_dependency = Annotated[Actor, Depends(require_roles(UserRole.VENDOR, UserRole.ADMIN, UserRole.CUSTOMER))]
delivery_dependency = Annotated[Actor, Depends(require_roles(UserRole.DELIVERY))]
