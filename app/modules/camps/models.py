# Supabase table: camps
# This file documents the expected database schema
# Actual operations are handled via the camp store (app/database)

"""
Expected Supabase table structure:
- id: uuid (primary key)
- name: text (not null)
- beds: integer (not null) - beds currently available
- original_beds: integer (not null) - total capacity
- resources: text[] (default: '{}')
- contact: text (nullable)
- ambulance: text ('Yes' | 'No' | 'Nearby', default: 'No')
- added_by: uuid (foreign key to profiles.id, nullable) - volunteer who created it
- type: text ('default' | 'volunteer-added')
- created_at: timestamp (default: now())
- updated_at: timestamp (set by trigger)
- check constraint: 0 <= beds <= original_beds
- delete trigger rejects camps with active selections
"""
