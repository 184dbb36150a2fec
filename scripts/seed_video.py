#!/usr/bin/env python3
"""
Seed a video record and print an access token for its owner.

Video records are created outside the upload API, so local testing needs a
record to upload against. This script inserts one into the configured MongoDB
database and prints the video id together with a bearer token for the owner.

Usage:
    python scripts/seed_video.py [options]

Options:
    --user-id UUID      Owner of the new record (random if omitted)
    --title TEXT        Video title
    --description TEXT  Video description

Environment Variables:
    MONGODB_URI, MONGODB_DB_NAME, SECRET_KEY (see tubely.config.Settings)
"""

import argparse
import asyncio
import sys

from uuid import UUID, uuid4

from tubely.config import get_settings
from tubely.core.auth import create_access_token
from tubely.core.database import close_db, init_db
from tubely.models.video import VideoRecord
from tubely.services.video_repository import VideoRepository


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create a Tubely video record and print an owner token.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--user-id", type=UUID, default=None, help="Owner UUID")
    parser.add_argument("--title", default="Untitled video", help="Video title")
    parser.add_argument("--description", default="", help="Video description")
    return parser.parse_args()


async def seed(args: argparse.Namespace) -> VideoRecord:
    settings = get_settings()
    db_client = await init_db(settings)
    try:
        repository = VideoRepository(db_client.get_videos_collection())
        video = VideoRecord(
            id=uuid4(),
            user_id=args.user_id or uuid4(),
            title=args.title,
            description=args.description,
        )
        return await repository.create(video)
    finally:
        await close_db()


def main() -> int:
    args = parse_arguments()
    try:
        video = asyncio.run(seed(args))
    except RuntimeError as e:
        print(f"Failed to seed video: {e}", file=sys.stderr)
        return 1

    print(f"video_id: {video.id}")
    print(f"user_id:  {video.user_id}")
    print(f"token:    {create_access_token(video.user_id)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
