"""
dependencies/security.py

Session token → SessionContext, plus the role/permission guards used by routers.

Lifecycle:
  - select school  → new token, role "visitor"
  - login          → same token upgraded to admin | staff | parent
  - logout         → token row deleted, follow-up bucket cleared
Tokens never expire.
"""

import secrets
from dataclasses import dataclass, field
from typing import Annotated, List, Optional, Set

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from database.db import get_db
from models.parent_links import ParentLink
from models.staff import StaffUser
from models.user_sessions import UserSession
from schemas.enums import Role
from services.exceptions import Forbidden, Unauthorized

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]

SCHOOL_REQUIRED = ("SCHOOL_REQUIRED", "/select-school")
LOGIN_REQUIRED = ("LOGIN_REQUIRED", "/login")


@dataclass
class SessionContext:
    token: str
    school_id: int
    role: Role
    staff: Optional[StaffUser] = None
    parent_civil_id: Optional[str] = None
    children: Set[str] = field(default_factory=set)   # parent sessions only

    @property
    def permissions(self) -> List[str]:
        return list(self.staff.permissions or []) if self.staff is not None else []

    @property
    def assignments(self) -> List[tuple]:
        """(grade, class_name) pairs assigned to the staff user."""
        if self.staff is None:
            return []
        return [(a.get("grade"), a.get("class_name")) for a in (self.staff.assignments or [])]

    def has_permission(self, key: str) -> bool:
        return self.role == Role.ADMIN or key in self.permissions

    @property
    def targets(self) -> Set[str]:
        """Notification inbox ids this session may read."""
        if self.role == Role.STAFF and self.staff is not None:
            return {str(self.staff.id)}
        if self.role == Role.PARENT:
            return set(self.children)
        return set()


def new_token() -> str:
    return secrets.token_hex(32)


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """"Bearer <token>" → token; None when the header is missing."""
    if not authorization:
        return None
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise Unauthorized("Invalid Authorization header format", *SCHOOL_REQUIRED)
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Invalid auth scheme", *SCHOOL_REQUIRED)
    return token.strip()


def linked_children(db: Session, school_id: int, parent_civil_id: str) -> Set[str]:
    rows = (
        db.query(ParentLink.student_id)
        .filter(ParentLink.school_id == school_id, ParentLink.parent_civil_id == parent_civil_id)
        .all()
    )
    # a parent can always see the student whose civil id they logged in with
    return {r[0] for r in rows} | {parent_civil_id}


def load_session(db: Session, token: str) -> Optional[SessionContext]:
    row = db.query(UserSession).filter(UserSession.token == token).first()
    if row is None:
        return None
    ctx = SessionContext(token=row.token, school_id=row.school_id, role=Role(row.role))
    if ctx.role == Role.STAFF:
        ctx.staff = (
            db.query(StaffUser)
            .filter(StaffUser.id == row.staff_id, StaffUser.school_id == row.school_id)
            .first()
        )
        if ctx.staff is None:
            return None
    elif ctx.role == Role.PARENT:
        ctx.parent_civil_id = row.parent_civil_id
        ctx.children = linked_children(db, row.school_id, row.parent_civil_id)
    return ctx


# ==========================================================
# Dependencies
# ==========================================================
def require_school(authorization: AuthHeader = None, db: Session = Depends(get_db)) -> SessionContext:
    """Any session with a selected school (visitors included)."""
    token = parse_bearer(authorization)
    if token is None:
        raise Unauthorized("يرجى اختيار المدرسة أولاً", *SCHOOL_REQUIRED)
    ctx = load_session(db, token)
    if ctx is None:
        raise Unauthorized("انتهت الجلسة، يرجى اختيار المدرسة من جديد", *SCHOOL_REQUIRED)
    return ctx


def require_login(ctx: SessionContext = Depends(require_school)) -> SessionContext:
    if ctx.role == Role.VISITOR:
        raise Unauthorized("يرجى تسجيل الدخول", *LOGIN_REQUIRED)
    return ctx


def require_admin(ctx: SessionContext = Depends(require_login)) -> SessionContext:
    if ctx.role != Role.ADMIN:
        raise Forbidden("هذه الصفحة مخصصة لإدارة المدرسة")
    return ctx


def require_staff(ctx: SessionContext = Depends(require_login)) -> SessionContext:
    """Staff console (admins pass too)."""
    if ctx.role not in (Role.STAFF, Role.ADMIN):
        raise Forbidden("هذه الصفحة مخصصة لمنسوبي المدرسة")
    return ctx


def require_parent(ctx: SessionContext = Depends(require_login)) -> SessionContext:
    if ctx.role != Role.PARENT:
        raise Forbidden("هذه الصفحة مخصصة لأولياء الأمور")
    return ctx


def require_permission(key: str):
    """Staff holding permission `key`; admins always pass."""
    def _check(ctx: SessionContext = Depends(require_staff)) -> SessionContext:
        if not ctx.has_permission(key):
            raise Forbidden("ليس لديك صلاحية لهذا الإجراء")
        return ctx
    return _check


def ensure_child(ctx: SessionContext, student_id: str) -> None:
    """Parents may only read their linked students."""
    if ctx.role == Role.PARENT and student_id not in ctx.children:
        raise Forbidden("لا يمكنك الاطلاع على بيانات هذا الطالب")
