"""
db/ - Database Layer
====================
Handles connections to the two supported stores: the Firebase Realtime
Database (default) and PostgreSQL (JSONB documents).
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
