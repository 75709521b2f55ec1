"""
Destination field catalogs for bulk imports.

One catalog per importable table. Descriptions are what the semantic mapper
sees, so they describe what a column means, not how it is stored.
"""

from exceptions import NotFoundError
from models.imports import EntityType, FieldCatalog, FieldDescriptor, FieldType

# Legacy export columns that are never imported
EXCLUDED_HEADERS = ("ysnPrint", "Save_tag", "SiteState", "RunTag")


CUSTOMER_CATALOG = FieldCatalog(
    entity_type=EntityType.CUSTOMERS,
    version=1,
    excluded_headers=EXCLUDED_HEADERS,
    fields=(
        FieldDescriptor(
            machine_name="service_id", label="Service ID", required=True,
            description="Unique service identifier or service number",
        ),
        FieldDescriptor(
            machine_name="site_name", label="Site Name", required=True,
            description="Customer name, business name, or site name",
        ),
        FieldDescriptor(
            machine_name="site_street_name", label="Street Name",
            description="Street address",
        ),
        FieldDescriptor(
            machine_name="site_suburb", label="Suburb",
            description="City or suburb",
        ),
        FieldDescriptor(
            machine_name="site_post_code", label="Post Code",
            description="Postal/ZIP code",
        ),
        FieldDescriptor(
            machine_name="site_email_address", label="Email Address",
            description="Email address",
        ),
        FieldDescriptor(
            machine_name="site_fax_no", label="Fax No",
            description="Fax number",
        ),
        FieldDescriptor(
            machine_name="postal_address", label="Postal Address",
            description="Full postal address",
        ),
        FieldDescriptor(
            machine_name="site_contact_first_name", label="Contact First Name",
            description="Contact first name",
        ),
        FieldDescriptor(
            machine_name="site_contact_lastname", label="Contact Last Name",
            description="Contact last name",
        ),
        FieldDescriptor(
            machine_name="site_accounts_contact", label="Accounts Contact",
            description="Accounts contact person",
        ),
        FieldDescriptor(
            machine_name="site_telephone_no1", label="Telephone No 1",
            description="Primary phone number",
        ),
        FieldDescriptor(
            machine_name="site_telephone_no2", label="Telephone No 2",
            description="Secondary phone number",
        ),
        FieldDescriptor(
            machine_name="site_pobox", label="PO Box",
            description="PO Box number",
        ),
        FieldDescriptor(
            machine_name="delete_tag", label="Delete Tag",
            description="Delete flag (boolean)",
            field_type=FieldType.BOOLEAN,
        ),
        FieldDescriptor(
            machine_name="contract_date", label="Contract Date",
            description="Contract start date",
        ),
        FieldDescriptor(
            machine_name="date_cancel", label="Date Cancel",
            description="Cancellation date",
        ),
        FieldDescriptor(
            machine_name="contract_notes", label="Contract Notes",
            description="Contract notes",
        ),
        FieldDescriptor(
            machine_name="notes", label="Notes",
            description="General notes",
        ),
    ),
)


RUN_CATALOG = FieldCatalog(
    entity_type=EntityType.RUNS,
    version=1,
    excluded_headers=EXCLUDED_HEADERS,
    fields=(
        FieldDescriptor(
            machine_name="service_id", label="Service ID", required=True,
            description="Unique service identifier or service number of the customer site",
        ),
        FieldDescriptor(
            machine_name="clients", label="Clients",
            description="Client, customer or site name visited on the run",
        ),
        FieldDescriptor(
            machine_name="suburb", label="Suburb",
            description="City or suburb of the site",
        ),
        FieldDescriptor(
            machine_name="weeks", label="Weeks",
            description="Which weeks of the cycle the run happens (e.g. 1,3 or ALL)",
        ),
        FieldDescriptor(
            machine_name="week_day", label="Week Day",
            description="Day of the week the run is scheduled",
        ),
        FieldDescriptor(
            machine_name="products", label="Products",
            description="Products or services provided",
        ),
        FieldDescriptor(
            machine_name="frequency", label="Frequency",
            description="How often the service is performed (weekly, fortnightly, monthly, etc.)",
        ),
        FieldDescriptor(
            machine_name="technicians", label="Technicians",
            description="Technician or technicians assigned to the run",
        ),
        FieldDescriptor(
            machine_name="completed", label="Completed",
            description="Whether the run has been completed (yes/no, true/false, 1/0)",
            field_type=FieldType.BOOLEAN,
        ),
    ),
)


SERVICE_AGREEMENT_CATALOG = FieldCatalog(
    entity_type=EntityType.SERVICE_AGREEMENTS,
    version=1,
    excluded_headers=EXCLUDED_HEADERS,
    fields=(
        FieldDescriptor(
            machine_name="service_id", label="Service ID", required=True,
            description="Unique service identifier or service number",
        ),
        FieldDescriptor(
            machine_name="products", label="Products",
            description="Products or services provided",
        ),
        FieldDescriptor(
            machine_name="areas_covered", label="Areas Covered",
            description="Areas or locations covered by the service",
        ),
        FieldDescriptor(
            machine_name="service_frequency", label="Service Frequency",
            description="How often the service is performed (daily, weekly, monthly, etc.)",
        ),
        FieldDescriptor(
            machine_name="service_active_inactive", label="Service Active/Inactive",
            description="Current status of the service (Active or Inactive)",
        ),
        FieldDescriptor(
            machine_name="invoice_type", label="Invoice Type",
            description="Type of invoice or billing method",
        ),
        FieldDescriptor(
            machine_name="cpm_device_onsite", label="CPM Device Onsite",
            description="CPM (Cost Per Month) device information or onsite equipment",
        ),
        FieldDescriptor(
            machine_name="unit_price", label="Unit Price",
            description="Price per unit of service",
            field_type=FieldType.NUMBER,
        ),
        FieldDescriptor(
            machine_name="cpm_pricing", label="CPM Pricing",
            description="Cost per month pricing",
            field_type=FieldType.NUMBER,
        ),
        FieldDescriptor(
            machine_name="cpi", label="CPI",
            description="Consumer Price Index adjustment or pricing index",
            field_type=FieldType.NUMBER,
        ),
        FieldDescriptor(
            machine_name="total", label="Total",
            description="Total cost or price",
            field_type=FieldType.NUMBER,
        ),
        FieldDescriptor(
            machine_name="comments", label="Comments",
            description="Additional comments or notes",
        ),
    ),
)


CATALOGS: dict[EntityType, FieldCatalog] = {
    EntityType.CUSTOMERS: CUSTOMER_CATALOG,
    EntityType.RUNS: RUN_CATALOG,
    EntityType.SERVICE_AGREEMENTS: SERVICE_AGREEMENT_CATALOG,
}


def get_catalog(entity_type: EntityType | str) -> FieldCatalog:
    """
    Catalog for an entity type.

    Raises:
        NotFoundError: If the entity type is not importable
    """
    try:
        return CATALOGS[EntityType(entity_type)]
    except ValueError:
        raise NotFoundError(
            resource="Field catalog",
            identifier=str(entity_type),
            code="CATALOG_NOT_FOUND"
        )


def describe_fields(machine_names: list[str]) -> dict[str, str]:
    """
    Descriptions for arbitrary column names across every catalog.

    Used by the standalone mapping endpoint, where the caller sends bare
    column names. Unknown names get "No description".
    """
    known: dict[str, str] = {}
    for catalog in CATALOGS.values():
        for descriptor in catalog.fields:
            known.setdefault(descriptor.machine_name, descriptor.description)
    return {name: known.get(name, "No description") for name in machine_names}
