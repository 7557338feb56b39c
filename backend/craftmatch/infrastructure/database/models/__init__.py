from .artisan_profile import ArtisanProfileModel

__all__ = [
    "ArtisanProfileModel",
]
