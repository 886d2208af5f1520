# app/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Service graph construction and startup configuration report
- db: Database configuration and connection management
- errors: Domain error taxonomy shared by services and routers
- security: License key generation and payment webhook signature verification
"""
