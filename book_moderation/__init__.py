"""
Django Book Moderation
======================

Comment reporting and moderation for a book-review community: reports,
threshold auto-removal, moderator resolution, book soft-delete cascades
and an append-only audit log.
"""

__version__ = '1.0.0'
