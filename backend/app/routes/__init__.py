"""
Tulisin Backend — API Routes Package
=====================================

Route Inventory (mounted under API_PREFIX, default /api/v1):
    - auth.py:      /auth/register, /auth/login, /auth/logout, /auth/me
    - sections.py:  /sections, /sections/{section_id}
    - notes.py:     /notes?sectionId=..., /notes/{note_id}
    - health.py:    /health (unprefixed)

Routes stay thin: parse the request, call one service method, shape the
response. Ownership rules and transactions live in the services.
"""
