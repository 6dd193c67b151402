"""
Tulisin Backend — Services Layer
=================================

Business rules between the routes (HTTP) and the repositories (SQL).

Service Inventory:
    - AuthService:     register / login / current user
    - SectionService:  owner-scoped section CRUD
    - NoteService:     owner-scoped note CRUD with section-ownership checks

Each service holds the injected `Database` and picks the access mode per
operation: a pooled client for read sequences, a transaction for writes.
"""
