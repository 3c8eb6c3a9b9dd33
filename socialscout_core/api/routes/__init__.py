"""API routes."""

from socialscout_core.api.routes import campaigns, contacts, export, scraping, tags

__all__ = ["campaigns", "contacts", "export", "scraping", "tags"]
