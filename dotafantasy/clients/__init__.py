"""Clients for the Liquipedia and STRATZ providers."""

from dotafantasy.clients.exceptions import ProviderError
from dotafantasy.clients.liquipedia import LiquipediaClient
from dotafantasy.clients.stratz import StratzClient

__all__ = ["ProviderError", "LiquipediaClient", "StratzClient"]
