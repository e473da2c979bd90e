"""Connectors package — tenant lookup and Xero Accounting API access."""
from xeroview.connectors.accounting import RESOURCES, Resource
from xeroview.connectors.connections import Tenant, get_tenants

__all__ = ["RESOURCES", "Resource", "Tenant", "get_tenants"]
