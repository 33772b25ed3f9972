# Supabase table: camp_selections
# This file documents the expected database schema
# Writes go through the ledger_select_camp / ledger_cancel_selection functions

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- camp_id: uuid (foreign key to camps.id, not null, on delete cascade)
- status: text ('active' | 'cancelled', default: 'active')
- selected_at: timestamp (default: now())
- cancelled_at: timestamp (nullable, set exactly when status = 'cancelled')
- partial unique index on (user_id) where status = 'active'
"""
