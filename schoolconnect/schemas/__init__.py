"""
Schemas module - Request/Response schemas for API endpoints.

Everything lives in schemas.py:
- Enums for roles and statuses
- Request schemas with the form validation rules
- Response schemas (what the API returns)
"""
