# Supabase tables: cd_scan, vinyl2_scan
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
cd_scan / vinyl2_scan (one row per scanned item, same shape for both media):
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id)
- artist, title, label, catalog_number, genre, style, country: text (nullable)
- year: integer (nullable)
- discogs_id: integer (nullable)
- condition_grade: text (nullable)
- calculated_advice_price: numeric (nullable)
- median_price, lowest_price, highest_price, marketplace_price: numeric (nullable)
- front_image: text (nullable)
- created_at: timestamp (default: now())
"""
