"""Tenants module - database-per-tenant lifecycle.

Import the manager from ``tenant_db.modules.tenants.manager``; this
package init stays import-light because the cache layer depends on the
tenant schemas.
"""
