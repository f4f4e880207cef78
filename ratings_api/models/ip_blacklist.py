from sqlalchemy import Column, String, Integer

from ratings_api.db.base import Base


class BlacklistedIp(Base):
    """Client address refused by every API route."""
    __tablename__ = "ip_blacklist"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ip_address = Column(String(45), unique=True, nullable=False)
