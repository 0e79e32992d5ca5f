# Supabase tables: quiz_results (reads cd_scan / vinyl2_scan for quiz input)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
quiz_results:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id)
- quiz_type: text (e.g. 'collection', 'christmas', 'daily')
- questions_total: integer
- questions_correct: integer
- score_percentage: integer (0-100)
- badge_earned: text (nullable)
- is_public: boolean (default: false)
- created_at: timestamp (default: now())
"""
