"""
Cache keys for every remote read.

Keys are prefixes for invalidation: INTERNSHIPS also matches every
per-category list built by internships_by_category().
"""

from __future__ import annotations

from .cache import CacheKey

INTERNSHIPS: CacheKey = ("internships",)
CATEGORY_COUNTS: CacheKey = ("categoryCounts",)
CALLER_PROFILE: CacheKey = ("currentUserProfile",)
ADMIN_FLAG: CacheKey = ("isAdmin",)
CALLER_ROLE: CacheKey = ("callerRole",)
COMPANY_SUBMISSIONS: CacheKey = ("companySubmissions",)
CONTACT_SUBMISSIONS: CacheKey = ("contactSubmissions",)


def internships_by_category(category: str) -> CacheKey:
    return INTERNSHIPS + ("category", category)
