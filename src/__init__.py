"""Client-side data access layer for recipe records: validation, caching, pagination."""
