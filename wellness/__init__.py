"""
Wellness backend package.

A FastAPI service for the yoga video and meditation image catalog, user
favorites and reminders, byte-range media streaming from object storage,
and the Spotify token exchange used by the single-page client.
"""
