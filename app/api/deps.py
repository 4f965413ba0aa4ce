"""
Request dependencies.

Everything is read from app.state, populated by the lifespan in
app.main; nothing here holds a connection of its own.
"""

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.db.mongo import MongoDatabase
from app.gateways.base import MessagingGateway
from app.services.command_service import CommandService
from app.services.event_channel import InboundEventChannel
from app.services.locks import PieLocks


def get_mongodb(request: Request) -> MongoDatabase:
    return request.app.state.mongodb


def get_db(request: Request) -> AsyncIOMotorDatabase:
    return request.app.state.mongodb.db


def get_gateway(request: Request) -> MessagingGateway:
    return request.app.state.gateway


def get_locks(request: Request) -> PieLocks:
    return request.app.state.locks


def get_event_channel(request: Request) -> InboundEventChannel:
    return request.app.state.events


def get_command_service(
    db: AsyncIOMotorDatabase = Depends(get_db),
    gateway: MessagingGateway = Depends(get_gateway),
    locks: PieLocks = Depends(get_locks),
) -> CommandService:
    return CommandService(
        db,
        gateway,
        locks,
        channel=settings.CHANNEL_ID,
        confirmations=settings.SLICE_CONFIRMATIONS
    )
