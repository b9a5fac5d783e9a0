"""
Service layer over the MedConnect REST backend.

Each module is a set of plain functions taking an ApiClient (or
AsyncApiClient for the report fetcher and notifications).
"""
