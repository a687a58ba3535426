# ABOUTME: ShelfHelp availability checking and validation.
# ABOUTME: Scrapes reading services for availability and scores each claim's confidence.

__version__ = "0.1.0"
