from .slack import SlackClient
from .notion import NotionClient

__all__ = [
    'SlackClient',
    'NotionClient',
]
