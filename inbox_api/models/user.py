"""User account model.

Accounts are provisioned elsewhere; the inbox only needs to know whether an
id exists before serving that user's notifications.
"""

import uuid

from sqlalchemy import TIMESTAMP, Column, String, Text, Uuid, func

from inbox_api.database import Base


class User(Base):
    """User account model."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String, unique=True, nullable=False)
    display_name = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
