"""FastAPI dependencies shared by the routers."""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.resolvers.parsing import parse_optional_id
from app.resolvers.resolver import Resolver
from app.services.base import Deadline


def get_resolver(
    db: Session = Depends(get_db),
    x_user_id: Optional[str] = Header(None, description="Authenticated caller's user id"),
) -> Resolver:
    """One resolver per request, bound to the request session and deadline."""
    return Resolver(
        db,
        deadline=Deadline.after(settings.REQUEST_TIMEOUT_SECONDS),
        viewer_id=parse_optional_id(x_user_id, "X-User-Id"),
    )
