"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Discord (bot, cogs, voice connector)
- Audio (yt-dlp resolver and stream provider, FFmpeg sink)
"""
