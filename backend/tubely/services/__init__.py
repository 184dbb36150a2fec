"""
Business logic services for the Tubely backend.

- media_processor: ffprobe/ffmpeg wrappers and orientation classification
- video_repository: MongoDB-backed record store for videos
- video_upload_service: The video ingestion pipeline
- thumbnail_service: Thumbnail upload handling
"""
