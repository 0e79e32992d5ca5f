# Supabase Auth
# This module uses Supabase's built-in authentication system
# Profile data lives in the public.profiles table, roles in public.user_roles

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

profiles:
- user_id: uuid (foreign key to auth.users.id, unique)
- first_name: text (nullable)
- avatar_url: text (nullable)

user_roles:
- user_id: uuid (foreign key to auth.users.id)
- role: app_role enum ('admin', 'moderator', 'user')
- unique constraint on (user_id, role)

has_role(_user_id uuid, _role app_role) returns boolean (security definer)
"""
