"""Database seeders."""
