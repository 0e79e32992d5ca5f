# Supabase tables: youtube_facebook_queue, singles_facebook_queue, music_history_facebook_queue,
# album_facebook_queue, facebook_post_log, app_secrets
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Common queue columns (all four *_facebook_queue tables):
- id: uuid (primary key)
- status: text ('pending' | 'processing' | 'posted' | 'failed')
- priority: integer
- posted_at: timestamp (nullable)
- facebook_post_id: text (nullable)
- error_message: text (nullable)
- created_at / updated_at: timestamp

youtube_facebook_queue:
- video_id: text
- video_data: jsonb (title, description, channel_name, thumbnail_url, artist_name, content_type)
- scheduled_time: timestamp

music_history_facebook_queue:
- event_id: uuid
- event_date: date
- event_data: jsonb (year, title, description, category, artist, image_url)
- scheduled_time: timestamp

singles_facebook_queue:
- music_story_id: uuid (foreign key to music_stories.id)
- scheduled_for: timestamp

album_facebook_queue:
- blog_post_id: uuid (foreign key to blog_posts.id)
- artist, album_title, slug, artwork_url: text
- scheduled_for: timestamp

facebook_post_log:
- content_type: text
- title, content, image_url, url: text
- status: text ('posted' | 'failed')
- facebook_post_id: text (nullable)
- error_message: text (nullable)
- posted_at: timestamp (nullable)

app_secrets:
- secret_key: text (unique), e.g. FACEBOOK_PAGE_ACCESS_TOKEN
- secret_value: text
"""
