# Supabase tables: users, auth.users
# This file documents the expected database schema
# Actual operations are handled via DataAccessClient in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id)
- email: text (unique, not null)
- first_name: text (nullable)
- last_name: text (nullable)
- phone: text (nullable)
- user_type: text ('client' | 'provider')
- company_name: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Rows are normally inserted by a trigger on auth.users at sign-up. When the
trigger fails the identity exists without a users row; ProfileService.ensure_user_record
repairs that case.
"""

USERS_TABLE = "users"
