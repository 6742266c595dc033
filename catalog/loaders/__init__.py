"""
Catalog storage: Supabase and the local JSON catalog.
"""
