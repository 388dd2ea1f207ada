"""Reference data the ledger core depends on: customers, units and products.

Only creation and lookup live here; editing this data belongs to the
surrounding application.
"""

import logging
from typing import Optional

from hisab.database.base import Database
from hisab.domain.entities import Customer, Product, Unit
from hisab.domain.errors import (
    ConflictError,
    MissingRequiredField,
    UnknownReference,
    unknown_reference,
)

logger = logging.getLogger(__name__)


def _required(value: Optional[str], label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise MissingRequiredField(f"{label} is required")
    return value


class ReferenceService:
    """Service for customers, units and products."""

    def __init__(self, db: Database):
        self.db = db

    def create_customer(
        self,
        full_name: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Customer:
        full_name = _required(full_name, "Customer name")
        customer_id = self.db.create_customer(full_name, phone=phone, address=address, notes=notes)
        logger.info("Created customer %s (id=%s)", full_name, customer_id)
        return self.db.get_customer(customer_id)

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self.db.get_customer(customer_id)

    def list_customers(self) -> list[Customer]:
        return self.db.list_customers()

    def create_unit(self, name: str) -> Unit:
        name = _required(name, "Unit name")
        if any(unit.name == name for unit in self.db.list_units()):
            raise ConflictError(f"Unit with name '{name}' already exists")
        return self.db.get_unit(self.db.create_unit(name))

    def get_unit(self, unit_id: int) -> Optional[Unit]:
        return self.db.get_unit(unit_id)

    def list_units(self) -> list[Unit]:
        return self.db.list_units()

    def create_product(self, name: str, default_unit_id: Optional[int] = None) -> Product:
        """Create a product, optionally with the unit it is normally sold in.

        Raises:
            UnknownReference: If the default unit does not exist
        """
        name = _required(name, "Product name")
        if default_unit_id is not None and self.db.get_unit(default_unit_id) is None:
            raise UnknownReference(unknown_reference("unit", default_unit_id))
        product_id = self.db.create_product(name, default_unit_id=default_unit_id)
        logger.info("Created product %s (id=%s)", name, product_id)
        return self.db.get_product(product_id)

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.db.get_product(product_id)

    def list_products(self) -> list[Product]:
        return self.db.list_products()
