# Supabase tables: indexnow_queue, indexnow_submissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
indexnow_queue:
- id: uuid (primary key)
- url: text (absolute URL)
- content_type: text (e.g. 'blog_post', 'music_story', 'product')
- processed: boolean (default: false)
- processed_at: timestamp (nullable)
- created_at: timestamp (default: now())

indexnow_submissions:
- id: uuid (primary key)
- urls: text[]
- url_count: integer
- status_code: integer (0 when the request never reached the endpoint)
- response_body: text (nullable)
- content_type: text (nullable)
- submitted_at: timestamp (default: now())
"""
