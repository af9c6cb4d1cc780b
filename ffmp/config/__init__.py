"""
Configuration Package for FFMP.

This package centralizes the static configuration settings for the application.
Keeping them apart from the orchestration logic makes it easy to adjust defaults
without touching the core code.

This package includes settings for:
- Logging format and user-overridable paths for the `ffmpeg` executable.
- Default encoding parameters (thread count, codec, output pattern).
- The media file extensions picked up during directory enumeration.
"""
