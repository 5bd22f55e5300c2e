"""Product image ingestion pipeline.

Validates selected product images, uploads them concurrently to the media
service (or a local mock), derives responsive delivery URLs and keeps the
ordered product gallery with its primary image.
"""
