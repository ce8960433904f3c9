"""Find-or-create for structurally identical Address rows.

Runs inside the caller's transaction; each insert is wrapped in a SAVEPOINT so
a concurrent duplicate (caught by the table's unique constraint) can be
recovered by re-reading the winning row.
"""

from typing import Dict, Mapping, Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.logging_config import get_logger
from storefront.domain.models import Address

logger = get_logger(__name__)

ADDRESS_COLUMNS = ("address_line1", "address_line2", "city", "county", "postcode")

class AddressReconciler:
    def __init__(self, db: Session):
        self.db = db

    def find(self, fields: Mapping[str, Optional[str]]) -> Optional[Address]:
        conditions = []
        for column in ADDRESS_COLUMNS:
            attribute = getattr(Address, column)
            value = fields.get(column)
            conditions.append(attribute.is_(None) if value is None else attribute == value)
        return self.db.execute(
            select(Address).where(and_(*conditions)).order_by(Address.id).limit(1)
        ).scalar_one_or_none()

    def get_or_create(self, fields: Mapping[str, Optional[str]]) -> Address:
        existing = self.find(fields)
        if existing is not None:
            return existing

        address = Address(**{column: fields.get(column) for column in ADDRESS_COLUMNS})
        try:
            with self.db.begin_nested():
                self.db.add(address)
        except IntegrityError:
            # Another transaction inserted the same address first
            existing = self.find(fields)
            if existing is None:
                raise
            logger.info(f"Address {existing.id} created concurrently, reusing it")
            return existing
        logger.info(f"Created address {address.id}")
        return address

    def reconcile(self, addresses: Mapping[str, Mapping[str, Optional[str]]]) -> Dict[str, Address]:
        """Resolve each supplied address (keyed by kind) to a stored row."""
        return {kind: self.get_or_create(fields) for kind, fields in addresses.items()}
