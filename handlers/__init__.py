"""
handlers/ - Presentation Layer
================================
LINE webhook event handlers. Each handler receives a decoded event,
delegates to the LinkService, and answers through the MessageService.
No business logic lives here.
"""
