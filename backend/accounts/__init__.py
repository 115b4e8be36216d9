# accounts/__init__.py
"""
Accounts app - Authentication context and multi-tenancy.

This app provides:
- Company: Tenant/organization model
- User: Custom user model with active_company
- CompanyMembership: User-Company relationship (Owner / Member)
- ActorContext: Authorization context utilities

Token issuance and login flows live outside this service; this app only
consumes the authenticated user and resolves the company it acts in.
"""
