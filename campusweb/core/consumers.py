"""Realtime websocket consumers used across the project."""

from channels.generic.websocket import AsyncJsonWebsocketConsumer


def user_group_name(user_id) -> str:
    return f"user_{user_id}"


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """Push feedback thread events to the signed-in user."""

    async def connect(self):
        user = self.scope.get("user")
        if not user or user.is_anonymous:
            await self.close()
            return
        self.group_name = user_group_name(user.pk)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):  # pylint: disable=unused-argument
        group_name = getattr(self, "group_name", None)
        if group_name:
            await self.channel_layer.group_discard(group_name, self.channel_name)

    async def notify(self, event):
        """Forward serialized payloads to the websocket client."""

        await self.send_json(event.get("data", {}))
