# Supabase tables: discogs_oauth_temp, discogs_user_tokens, discogs_order_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
discogs_oauth_temp (request tokens between authorize and callback):
- oauth_token: text (primary key)
- oauth_token_secret: text (not null)
- user_id: uuid (foreign key to auth.users.id, not null)
- created_at: timestamp (default: now())

discogs_user_tokens:
- user_id: uuid (unique, foreign key to auth.users.id)
- oauth_token: text (not null)
- oauth_token_secret: text (not null)
- discogs_username: text (nullable)
- discogs_user_id: integer (nullable)
- connected_at: timestamp
- updated_at: timestamp

discogs_order_messages:
- user_id: uuid
- discogs_order_id: text
- sender_username: text (nullable)
- message: text (nullable)
- subject: text (nullable)
- original: text (nullable)
- status_id: integer (nullable)
- message_timestamp: timestamp (nullable)
- unique constraint on (discogs_order_id, sender_username, message_timestamp)
"""
