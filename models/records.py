"""
Destination record schemas, one per importable table.

Records are sparse: only fields with a coerced value are set, and
`to_insert()` drops everything else so the database applies its defaults.
"""

from typing import Optional

from pydantic import ConfigDict

from models.base import BaseSchema
from models.imports import EntityType


class DestinationRecord(BaseSchema):
    """Base for rows headed to a bulk insert."""
    model_config = ConfigDict(extra="forbid")

    service_id: str

    def to_insert(self) -> dict:
        """Row payload for the database client."""
        return self.model_dump(exclude_none=True)


class CustomerRecord(DestinationRecord):
    """Row for the customers table."""
    site_name: str
    site_street_name: Optional[str] = None
    site_suburb: Optional[str] = None
    site_post_code: Optional[str] = None
    site_email_address: Optional[str] = None
    site_fax_no: Optional[str] = None
    postal_address: Optional[str] = None
    site_contact_first_name: Optional[str] = None
    site_contact_lastname: Optional[str] = None
    site_accounts_contact: Optional[str] = None
    site_telephone_no1: Optional[str] = None
    site_telephone_no2: Optional[str] = None
    site_pobox: Optional[str] = None
    delete_tag: Optional[bool] = None
    contract_date: Optional[str] = None
    date_cancel: Optional[str] = None
    contract_notes: Optional[str] = None
    notes: Optional[str] = None


class RunRecord(DestinationRecord):
    """Row for the runs table."""
    clients: Optional[str] = None
    suburb: Optional[str] = None
    weeks: Optional[str] = None
    week_day: Optional[str] = None
    products: Optional[str] = None
    frequency: Optional[str] = None
    technicians: Optional[str] = None
    completed: Optional[bool] = None


class ServiceAgreementRecord(DestinationRecord):
    """Row for the service_agreements table."""
    products: Optional[str] = None
    areas_covered: Optional[str] = None
    service_frequency: Optional[str] = None
    service_active_inactive: Optional[str] = None
    invoice_type: Optional[str] = None
    cpm_device_onsite: Optional[str] = None
    unit_price: Optional[float] = None
    cpm_pricing: Optional[float] = None
    cpi: Optional[float] = None
    total: Optional[float] = None
    comments: Optional[str] = None


RECORD_MODELS: dict[EntityType, type[DestinationRecord]] = {
    EntityType.CUSTOMERS: CustomerRecord,
    EntityType.RUNS: RunRecord,
    EntityType.SERVICE_AGREEMENTS: ServiceAgreementRecord,
}
