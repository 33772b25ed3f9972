# Supabase Auth + table: profiles
# Supabase Auth handles credentials and JWTs (auth.users);
# the profiles table stores the role the ledger authorizes against.

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (unique, not null)
- name: text (not null)
- role: text ('refugee' | 'volunteer', not null) - fixed at registration
- age: integer (nullable)
- contact: text (nullable)
- address: text (nullable)
- needs: text (nullable) - refugees
- skills: text (nullable) - volunteers
- availability: text (nullable) - volunteers
- created_at: timestamp (default: now())
"""
