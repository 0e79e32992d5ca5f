# Supabase tables: cronjob_execution_log
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in logger.py and service.py

"""
cronjob_execution_log (one row per scheduled or manual run):
- id: uuid (primary key)
- function_name: text
- status: text ('running' | 'completed' | 'failed')
- started_at: timestamp
- completed_at: timestamp (nullable)
- execution_time_ms: integer (nullable)
- items_processed: integer (default: 0)
- metadata: jsonb (nullable)
- error_message: text (nullable)
"""
