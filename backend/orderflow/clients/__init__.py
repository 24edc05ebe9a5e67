"""Clients for external collaborators (catalog, user directory, SMTP)."""

from .catalog import CatalogClient, FoodDetails
from .mailer import SmtpMailer
from .users import UserDirectoryClient, UserInfo

__all__ = ["CatalogClient", "FoodDetails", "SmtpMailer", "UserDirectoryClient", "UserInfo"]
