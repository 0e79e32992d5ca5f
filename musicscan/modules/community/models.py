# Supabase tables: conversations, messages, photos, photo_likes, photo_comments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
conversations (one-to-one direct messaging):
- id: uuid (primary key)
- participant_1: uuid (the smaller user id of the pair)
- participant_2: uuid (the larger user id of the pair)
- last_message_at: timestamp (nullable)
- created_at: timestamp (default: now())
- unique (participant_1, participant_2)

messages:
- id: uuid (primary key)
- conversation_id: uuid (foreign key to conversations.id)
- sender_id: uuid
- content: text (1..5000 chars)
- is_read: boolean (default: false)
- created_at: timestamp (default: now())

photos (FanWall):
- id: uuid (primary key)
- user_id: uuid
- artist: text (nullable)
- display_url: text
- seo_slug: text
- status: text ('pending' | 'published' | 'flagged' | 'removed')
- like_count, comment_count: integer
- published_at: timestamp

photo_likes:
- id: uuid, photo_id: uuid, user_id: uuid, created_at: timestamp
- unique (photo_id, user_id)

photo_comments:
- id: uuid, photo_id: uuid, user_id: uuid
- body: text
- parent_comment_id: uuid (nullable)
- status: text ('visible' | 'hidden')
- created_at: timestamp
"""
