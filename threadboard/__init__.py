"""
threadboard – a minimal threaded discussion board engine.

Supports:
  • Top-level threads and flat one-level replies
  • Bump ordering (a reply moves its thread to the top of the listing)
  • Paginated thread listing with prev/next navigation
  • Anonymous image / video / audio attachments on disk or S3
  • PostgreSQL or in-memory key-value storage
"""
