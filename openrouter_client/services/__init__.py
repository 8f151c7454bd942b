from .chat import ChatService

__all__ = ["ChatService"]
