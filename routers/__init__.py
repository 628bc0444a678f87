"""
routers/ - HTTP Surface
========================
FastAPI routers: the LINE webhook, the browser registration endpoint and
the read-only pages. Routes only decode requests and render responses;
linking goes through the shared LinkService.
"""
