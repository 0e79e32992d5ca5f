# Supabase tables: platform_products, platform_orders, platform_order_items
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
platform_products (merchandise: posters, canvas, metal prints, buttons):
- id: uuid (primary key)
- slug: text (unique)
- title: text
- artist: text (nullable)
- description: text (nullable)
- media_type: text
- price: numeric
- compare_at_price: numeric (nullable)
- stock_quantity: integer
- allow_backorder: boolean (orders accepted when out of stock)
- status: text ('active' | 'draft' | 'archived' | 'sold_out')
- images: text[] (nullable)
- published_at, created_at: timestamp

platform_orders:
- id: uuid (primary key)
- order_number: text (unique, MS-YYYYMMDD-XXXXXX)
- customer_id: uuid (nullable for guest orders)
- customer_email, customer_name, customer_phone: text
- shipping_address: jsonb ({name, street, postal_code, city, country})
- subtotal, shipping_cost, total: numeric
- status: text ('pending' | 'paid' | 'processing' | 'shipped' | 'delivered' | 'cancelled')
- payment_status: text ('unpaid' | 'paid' | 'refunded')
- tracking_number, carrier: text (nullable)
- notes: text (nullable)
- shipped_at, delivered_at: timestamp (nullable)
- created_at, updated_at: timestamp

platform_order_items:
- id: uuid (primary key)
- order_id: uuid (foreign key to platform_orders.id)
- product_id: uuid (foreign key to platform_products.id)
- title, artist: text
- price: numeric (unit price at checkout)
- quantity: integer
"""
