"""
repositories/ - Data Access Layer
==================================
The Link Store. Each backend reads and writes whole identity documents
and returns domain model objects (models/link.py).
"""
