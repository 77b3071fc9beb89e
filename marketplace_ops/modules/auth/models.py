# Supabase Auth
# The admin API relies on Supabase's built-in authentication system.
# No custom tables are required - Supabase Auth handles:
# - JWT token generation and validation
# - app_metadata, which only the service role can write

"""
Access to the maintenance API is granted to auth users whose
app_metadata contains {"type": "super_user"}; it is set from the
Supabase dashboard or with the service role key.

auth.get_user(jwt) - Get current user from JWT token
auth.admin.*      - Identity administration (service role only)
"""

SUPER_USER_TYPE = "super_user"
