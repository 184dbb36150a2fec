"""
Core infrastructure for the Tubely backend application.

- auth: Local JWT issuing and validation
- database: MongoDB async client with Motor driver
- errors: Exception hierarchy mapped to HTTP status codes
- ingress: Request body size guard
- redis_client: Redis async client backing the Redis thumbnail store
- storage: S3-compatible storage client for MinIO/AWS S3
- thumbnail_store: Thumbnail storage backends
"""
