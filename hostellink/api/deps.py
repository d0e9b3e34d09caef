from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from hostellink.db.session import get_db
from hostellink.core.identity import Identity
from hostellink.core.security import decode_token, ACCESS
from hostellink.models.user import User
from hostellink.models.user_role import UserRole

bearer = HTTPBearer(auto_error=False)

def get_role(db: Session, user_id: str) -> str | None:
    r = db.query(UserRole).filter(UserRole.user_id == user_id).first()
    return r.role if r else None

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(creds.credentials, ACCESS)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    user_id = payload.get("sub")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

def get_identity(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Identity:
    role = get_role(db, user.id)
    if not role:
        raise HTTPException(status_code=403, detail="No role assigned")
    return Identity(user_id=user.id, role=role, email=user.email)

def require_roles(*roles: str):
    def _guard(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return identity
    return _guard
