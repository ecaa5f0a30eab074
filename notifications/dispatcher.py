import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from models.models import DispatchResult, NotificationMessage, UserRecord
from notifications.composer import (
    build_daily_message,
    build_user_message,
    current_utc_time,
    normalize_notification_time,
)
from processing.processing import ShlokService

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
OUTBOX_COLLECTION = "notification_outbox"
TOKEN_PREVIEW_LENGTH = 10


class UserNotFound(LookupError):
    pass


class MissingToken(ValueError):
    pass


class NotificationDispatcher:
    """
    Queues daily shlok notifications for users whose preferred time is now.

    Messages go to an outbox collection; the push worker that drains it is
    outside this service.
    """

    def __init__(self, users_collection, outbox_collection, service: ShlokService):
        self.users = users_collection
        self.outbox = outbox_collection
        self.service = service

    @classmethod
    async def create(
        cls, client: AsyncIOMotorClient, db_name: str, service: ShlokService
    ):
        db = client[db_name]
        self = cls(db[USERS_COLLECTION], db[OUTBOX_COLLECTION], service)
        await self.initialize()
        return self

    async def initialize(self):
        await self.users.create_index("preferences.notificationsEnabled")
        await self.outbox.create_index("created_at")

    async def find_due_users(self, current_time: str) -> list[UserRecord]:
        due: list[UserRecord] = []
        cursor = self.users.find({"preferences.notificationsEnabled": True})
        async for doc in cursor:
            user = UserRecord.from_mongo(doc)
            user_time = user.preferences.notificationTime
            if not user_time:
                continue
            formatted = normalize_notification_time(user_time)
            logger.debug(
                f"User {user.id} notification time: {formatted}, current time: {current_time}"
            )
            if formatted == current_time:
                logger.info(f"Time match for user {user.id}")
                due.append(user)
        return due

    async def enqueue(self, messages: list[NotificationMessage]) -> None:
        if not messages:
            return
        try:
            await self.outbox.insert_many([m.to_mongo() for m in messages])
        except PyMongoError as e:
            raise Exception(f"Failed to queue notifications: {e}")

    async def check_and_send(self, now: Optional[datetime] = None) -> DispatchResult:
        now = now or datetime.now(timezone.utc)
        current_time = current_utc_time(now)
        logger.info(f"Checking for notifications to send at {current_time} UTC")

        users = await self.find_due_users(current_time)
        logger.info(f"Found {len(users)} users to notify")
        if not users:
            return DispatchResult(
                message="No users scheduled for notifications at this time",
                total_processed=0,
            )

        shlok = await run_in_threadpool(self.service.get_daily_shlok, on=now)

        messages: list[NotificationMessage] = []
        errors: list[str] = []
        for user in users:
            token = user.preferences.fcmToken
            if not token:
                logger.warning(
                    f"User {user.id} has notifications enabled but no FCM token"
                )
                errors.append(f"User {user.id} has no FCM token")
                continue
            message = build_daily_message(shlok, token=token)
            message.user_id = user.id
            messages.append(message)

        await self.enqueue(messages)

        return DispatchResult(
            total_processed=len(users),
            total_sent=len(messages),
            errors=errors or None,
        )

    async def _get_user(self, user_id: str) -> UserRecord:
        doc = await self.users.find_one({"_id": user_id})
        if not doc:
            raise UserNotFound(f"User {user_id} not found")
        return UserRecord.from_mongo(doc)

    async def send_to_user(self, user_id: str, now: Optional[datetime] = None) -> dict:
        user = await self._get_user(user_id)
        token = user.preferences.fcmToken
        if not token:
            raise MissingToken("User has no FCM token saved")

        shlok = await run_in_threadpool(self.service.get_daily_shlok, on=now)
        message = build_user_message(shlok, token=token)
        message.user_id = user.id
        await self.enqueue([message])

        return {
            "message": f"Successfully sent notification to user {user_id}",
            "shlok": {"chapter": shlok.chapter, "verse": shlok.verse},
        }

    async def debug_user(self, user_id: str, now: Optional[datetime] = None) -> dict:
        now = now or datetime.now(timezone.utc)
        user = await self._get_user(user_id)
        prefs = user.preferences
        return {
            "userId": user_id,
            "notificationsEnabled": prefs.notificationsEnabled,
            "notificationTime": prefs.notificationTime or "Not set",
            "hasFcmToken": bool(prefs.fcmToken),
            "tokenLength": len(prefs.fcmToken) if prefs.fcmToken else 0,
            "lastUpdated": str(prefs.lastUpdated) if prefs.lastUpdated else "Never",
            "currentServerTime": now.isoformat(),
            "currentUTCTime": current_utc_time(now),
            # Only a prefix of the token is exposed
            "tokenFirstChars": f"{prefs.fcmToken[:TOKEN_PREVIEW_LENGTH]}..."
            if prefs.fcmToken
            else "None",
        }
