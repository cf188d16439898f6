"""
API route modules.

This package contains subrouters for:
- Auth: login, token refresh, logout, session validation and current user
- Users, warehouses and offices: administration
- Orders: workbook upload, orders, planned items
- Skid build, shipment load and pre-shipment workflows
- Dock monitor, settings, internal kanban exclusions and Toyota API configuration
- Reports: CSV/Excel/PDF exports

Routers are included from scanner_api.api.main (under the /api/v1 prefix).
"""
