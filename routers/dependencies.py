"""
routers/dependencies.py
------------------------
FastAPI dependencies. The services are built once in main.create_app()
and kept on `app.state`; routes receive them through Depends().
"""

from fastapi import Request
from linebot.v3.webhook import WebhookParser

from handlers.event_handler import EventHandler
from services.link_service import LinkService
from services.message_service import MessageService


def get_link_service(request: Request) -> LinkService:
    return request.app.state.link_service


def get_message_service(request: Request) -> MessageService:
    return request.app.state.message_service


def get_event_handler(request: Request) -> EventHandler:
    return request.app.state.event_handler


def get_webhook_parser(request: Request) -> WebhookParser:
    return request.app.state.webhook_parser
