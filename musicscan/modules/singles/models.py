# Supabase tables: master_singles, singles_import_queue, music_stories
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
master_singles (discovered singles waiting to be queued):
- id: uuid (primary key)
- artist_name: text
- title: text
- year: integer (nullable)
- label, genre: text (nullable)
- discogs_release_id: integer (nullable)
- discogs_url: text (nullable)
- artwork_large, artwork_thumb: text (nullable)
- status: text ('pending' | 'queued' | 'skipped' | 'failed')
- error_message: text (nullable)
- updated_at: timestamp

singles_import_queue (input for story generation):
- id: uuid (primary key)
- user_id: uuid
- batch_id: uuid
- artist: text
- single_name: text
- album, label, catalog, genre: text (nullable)
- year: integer (nullable)
- discogs_id: integer (nullable)
- discogs_url, artwork_url: text (nullable)
- styles, tags: text[] (nullable)
- status: text ('pending' | 'processing' | 'completed' | 'failed')
- priority: integer
- attempts: integer (default: 0)
- max_attempts: integer (default: 3)
- unique constraint on (artist, single_name)

music_stories (generated single stories):
- id: uuid (primary key)
- artist_name: text
- single_name: text (nullable)
- slug: text
- story_content: text
- artwork_url: text (nullable)
- is_published: boolean
- facebook_posted_at: timestamp (nullable)
"""
