from .notifications.service import NotificationDispatcher

__all__ = ['NotificationDispatcher']
