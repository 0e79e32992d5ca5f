# Supabase tables: batch_processing_status, batch_queue_items, artist_stories, discogs_import_log
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
batch_processing_status:
- id: uuid (primary key)
- process_type: text (e.g. 'artist_stories')
- status: text ('processing' | 'completed')
- total_items, processed_items, successful_items, failed_items: integer
- started_at, completed_at, last_heartbeat: timestamp
- created_at: timestamp (default: now())

batch_queue_items:
- id: uuid (primary key)
- batch_id: uuid (foreign key to batch_processing_status.id)
- item_id: uuid
- item_type: text ('artist')
- status: text ('pending' | 'processing' | 'completed' | 'failed')
- priority: integer (higher first)
- attempts: integer (default: 0)
- max_attempts: integer (default: 3)
- metadata: jsonb ({"artist_name": ...})
- error_message: text (nullable)
- processed_at: timestamp (nullable)
- created_at: timestamp (default: now())

artist_stories:
- id: uuid (primary key)
- artist_name: text (unique)
- slug: text
- story_content: text (markdown)
- biography: text
- music_style: text[] (nullable)
- notable_albums: text[] (nullable)
- artwork_url: text (nullable)
- is_published: boolean
- published_at: timestamp
- reading_time, word_count: integer
- meta_title, meta_description: text
- user_id: uuid (nullable)

discogs_import_log (read only here):
- artist: text
"""
