"""
views/ - HTML Rendering
========================
Server-rendered pages for the browser endpoints. Pure string builders,
no I/O.
"""
