# Supabase table: volunteer_assignments
# This file documents the expected database schema

"""
Expected Supabase table structure:
- id: uuid (primary key)
- volunteer_id: uuid (foreign key to profiles.id, not null)
- camp_id: uuid (foreign key to camps.id, not null, on delete cascade)
- created_at: timestamp (default: now())

Append-only; the same volunteer may be assigned to the same camp repeatedly.
"""
