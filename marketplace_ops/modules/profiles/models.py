# Supabase tables: client_profiles, provider_profiles
# One row per users row of the matching user_type (user_id references users.id).
# Nothing enforces the pairing at write time; ProfileService repairs it afterwards.

"""
client_profiles:
- id: uuid (primary key)
- user_id: uuid (unique, references users.id)
- company_name, vat_number, fiscal_code: text
- company_size: text (micro | small | medium | large)
- industry_sector: text
- employees_count: integer
- phone: text
- legal_street, legal_city, legal_province, legal_postal_code, legal_country: text
- contact_person_name, contact_person_email, contact_person_phone: text

provider_profiles:
- id: uuid (primary key)
- user_id: uuid (unique, references users.id)
- business_name, vat_number, fiscal_code, phone, website, description: text
- experience_years, team_size: integer
- street, city, province, postal_code, country: text
- contact_person_name, contact_person_email, contact_person_phone: text
- specializations, service_areas, languages: text[]
- rating_average: numeric
- reviews_count: integer
- verified, auto_accept_bookings: boolean
- advance_notice_hours: integer
"""

CLIENT_PROFILES_TABLE = "client_profiles"
PROVIDER_PROFILES_TABLE = "provider_profiles"

PROFILE_TABLES = {
    "client": CLIENT_PROFILES_TABLE,
    "provider": PROVIDER_PROFILES_TABLE,
}

DEFAULT_COUNTRY = "Italy"
DEFAULT_LANGUAGES = ["Italian"]
DEFAULT_COMPANY_NAME = "Azienda"
DEFAULT_CONTACT_NAME = "Contatto"
