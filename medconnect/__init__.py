"""
MedConnect Reports

Client toolkit and web frontend for the MedConnect Rwanda REST backend.

Components:
- config: Settings defaults and environment overrides
- session: Explicit session context (token, role, user profile)
- api_client: httpx clients with error mapping
- services: Auth, users, forum, appointments, dashboard, notifications, report fetching
- report_engine: Section builders, PDF document assembly, export, doctor report
- routers: FastAPI endpoints for previews and downloads
"""

__version__ = "1.0.0"
