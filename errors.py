"""Exceptions raised by the integrations behind the API."""


class HousingHubError(Exception):
    """Base exception for the Housing Hub backend."""
    pass


class AINotConfiguredError(HousingHubError):
    """No text-generation API key is configured."""
    pass


class AIServiceError(HousingHubError):
    """The text-generation call failed or returned no text."""
    pass


class ImageUploadError(HousingHubError):
    """The image host rejected or failed an upload."""
    pass
