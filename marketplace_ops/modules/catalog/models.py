# Supabase tables: services, archived_services
# services.provider_id is expected to reference a users.id that has a
# provider_profiles row; nothing enforces it, see CatalogService.

"""
services:
- id: uuid (primary key)
- provider_id: uuid (references users.id, nullable in practice)
- title, description, category, subcategory: text (searched with ilike)
- base_price: numeric
- duration_hours: numeric
- currency, location_type, location_street: text
- requirements, images: text[]
- active: boolean (only active services are visible)
- created_at, updated_at: timestamp

archived_services:
- snapshot of a services row plus metadata (jsonb); written by the
  archive_service(p_service_id uuid, p_user_id uuid) SQL function, which
  deletes the services row in the same call.
"""

SERVICES_TABLE = "services"
ARCHIVED_SERVICES_TABLE = "archived_services"
