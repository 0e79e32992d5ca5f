# Supabase tables: discogs_pricing_sessions (reads cd_scan / vinyl2_scan)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
discogs_pricing_sessions (one price snapshot per release per run):
- id: uuid (primary key)
- discogs_id: integer
- discogs_url: text
- release_title, artist_name: text
- lowest_price, median_price, highest_price: numeric (nullable)
- num_for_sale: integer (nullable)
- total_prices_found: integer (nullable)
- extraction_method: text ('direct' | 'scraperapi')
- strategy_used: text ('html_parsing')
- success: boolean
- error_message: text (nullable)
- raw_response: text (truncated)
- execution_time_ms: integer
- created_at: timestamp (default: now())
"""
