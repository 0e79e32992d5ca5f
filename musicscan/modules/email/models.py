# Supabase tables: email_logs (reads platform_orders, platform_order_items)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
email_logs (one row per transactional email sent):
- id: uuid (primary key)
- email_type: text ('order_confirmation' | 'order_shipped' | 'order_delivered')
- recipient_email: text
- subject: text
- status: text ('sent' | 'failed')
- resend_id: text (nullable)
- user_id: uuid (nullable)
- metadata: jsonb ({order_id, order_number})
- created_at: timestamp (default: now())
"""
