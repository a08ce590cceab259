"""
Expense Assets - Source Package

Client-side services for an expense-management app:
receipt and avatar uploads to Firebase Storage, and the
Firebase ID token that authorizes calls to the backend API.

DESIGN PRINCIPLES:
1. Upload failures always surface to the caller
2. Auth failures degrade to "no token", never to exceptions
3. No automatic retries
4. Every external service sits behind a swappable interface
"""

__version__ = "1.0.0"
__author__ = "Expense Assets Team"
