"""
Store helpers for the IP blacklist table.
"""
from typing import Iterable, List

from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from ratings_api.db.session import atomic
from ratings_api.models.ip_blacklist import BlacklistedIp


def get_ips(db: Session) -> List[str]:
    return list(db.execute(select(BlacklistedIp.ip_address).order_by(BlacklistedIp.ip_address)).scalars().all())


def add_ips(db: Session, ip_addresses: Iterable[str]) -> int:
    """Add addresses not already listed. Returns how many were inserted."""
    wanted = {ip.strip() for ip in ip_addresses if ip and ip.strip()}

    with atomic(db):
        existing = set(
            db.execute(select(BlacklistedIp.ip_address).where(BlacklistedIp.ip_address.in_(sorted(wanted)))).scalars()
        )
        new_ips = sorted(wanted - existing)
        db.add_all(BlacklistedIp(ip_address=ip) for ip in new_ips)
    return len(new_ips)


def delete_ip(db: Session, ip_address: str) -> int:
    with atomic(db):
        result = db.execute(delete(BlacklistedIp).where(BlacklistedIp.ip_address == ip_address))
    return result.rowcount
