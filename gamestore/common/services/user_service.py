from typing import Dict, Optional
from uuid import uuid4

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.status import UserRole
from ..models.user import User
from ..utils.pagination import normalize_paging, pagination_meta
from .logging import log_event


class UserService:
    """Store-side profiles keyed by the identity provider's uid.

    Provisioning is an explicit upsert, called by the auth routes after a
    token has been verified; the auth gate itself never writes.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def get_by_uid(self, uid: str) -> Dict:
        with self._session_factory() as session:
            user = session.query(User).filter(User.uid == uid).first()
            if not user:
                raise NotFoundError("User profile not found")
            return user.to_dict()

    def upsert_from_claims(self, claims: Dict) -> Dict:
        """Return the profile for ``claims['uid']``, creating it on first sight."""
        uid = claims.get("uid")
        if not uid:
            raise ValidationError("Token has no subject")
        with self._session_factory() as session:
            user = session.query(User).filter(User.uid == uid).first()
            if user:
                return user.to_dict()
            email = (claims.get("email") or "").lower()
            name_parts = (claims.get("name") or "User").split(" ")
            base_username = email.split("@")[0] if email else f"user_{uid[:8]}"
            user = User(
                id=str(uuid4()),
                uid=uid,
                email=email or f"{uid}@users.invalid",
                username=self._free_username(session, base_username, uid),
                first_name=name_parts[0] or "User",
                last_name=" ".join(name_parts[1:]),
                role=UserRole.USER.value,
                is_email_verified=bool(claims.get("email_verified")),
            )
            session.add(user)
            session.flush()
            log_event("info", "user.provisioned", uid=uid)
            return user.to_dict()

    def register(
        self,
        claims: Dict,
        *,
        email: str,
        username: str,
        first_name: str,
        last_name: str,
        phone: str = "",
    ) -> Dict:
        uid = claims.get("uid")
        if (claims.get("email") or "").lower() != email.lower():
            raise ValidationError("Email does not match authenticated user")
        with self._session_factory() as session:
            if session.query(User.id).filter(User.uid == uid).first():
                raise ConflictError("User profile already exists")
            if session.query(User.id).filter(User.username == username).first():
                raise ConflictError("Username is already taken")
            if session.query(User.id).filter(User.email == email.lower()).first():
                raise ConflictError("Email is already registered")
            user = User(
                id=str(uuid4()),
                uid=uid,
                email=email.lower(),
                username=username,
                first_name=first_name,
                last_name=last_name,
                phone=phone or "",
                role=UserRole.USER.value,
                is_email_verified=bool(claims.get("email_verified")),
            )
            session.add(user)
            session.flush()
            log_event("info", "user.registered", uid=uid)
            return user.to_dict()

    @staticmethod
    def _free_username(session, base: str, uid: str) -> str:
        candidate = base
        if session.query(User.id).filter(User.username == candidate).first():
            candidate = f"{base}_{uid[:6]}"
        return candidate

    def set_role(self, uid: str, role: str) -> Optional[Dict]:
        if role not in {r.value for r in UserRole}:
            raise ValidationError("Validation failed", errors=[{"field": "role", "message": "must be USER or ADMIN"}])
        with self._session_factory() as session:
            user = session.query(User).filter(User.uid == uid).first()
            if not user:
                raise NotFoundError("User not found")
            user.role = role
            session.flush()
            return user.to_dict()

    def role_for(self, uid: str) -> Optional[str]:
        with self._session_factory() as session:
            row = session.query(User.role).filter(User.uid == uid).first()
            return row[0] if row else None

    def list_users(self, *, page=1, limit=20) -> Dict:
        p, lim = normalize_paging(page, limit, default_limit=20)
        with self._session_factory() as session:
            q = session.query(User)
            total = q.count()
            rows = q.order_by(User.created_at.desc()).offset((p - 1) * lim).limit(lim).all()
            return {"users": [u.to_dict() for u in rows], "pagination": pagination_meta(p, lim, total)}
