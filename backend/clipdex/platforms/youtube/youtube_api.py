"""YouTube API client for channel lookup, uploads, listing and deletion."""

import io
from typing import Dict, List, Optional

from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from clipdex.platforms.youtube.auth import credentials_from_tokens
from clipdex.services.logging_service import logger
from clipdex.utils.validators import parse_iso8601_duration

GAMING_CATEGORY_ID = '20'
CHUNKSIZE = 8 * 1024 * 1024
MAX_IMPORT_RESULTS = 50


def watch_url(video_id: str) -> str:
    return f'https://www.youtube.com/watch?v={video_id}'


def channel_url(channel_id: str) -> str:
    return f'https://youtube.com/channel/{channel_id}'


class YouTubeAPIError(Exception):
    """A YouTube Data API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _best_thumbnail(thumbnails: Dict, order: List[str]) -> Optional[str]:
    for size in order:
        url = (thumbnails.get(size) or {}).get('url')
        if url:
            return url
    return None


class YouTubeAPI:
    """Client for the YouTube Data API v3 acting on behalf of one channel."""

    def __init__(self, credentials: Credentials):
        """Initialize the YouTube API client.

        Args:
            credentials: OAuth credentials of the channel owner
        """
        self.credentials = credentials
        self.youtube = build('youtube', 'v3', credentials=credentials, cache_discovery=False)

    @classmethod
    def from_connection(cls, connection) -> 'YouTubeAPI':
        """Build a client from a stored PlatformConnection."""
        return cls(credentials_from_tokens(
            connection.access_token,
            connection.refresh_token,
            connection.expires_at
        ))

    def _execute(self, request, action: str):
        try:
            return request.execute()
        except HttpError as e:
            status = e.resp.status if e.resp is not None else None
            raise YouTubeAPIError(f'{action} failed: {e.reason or e}', status_code=status) from e
        except RefreshError as e:
            raise YouTubeAPIError(f'{action} failed: {e}', status_code=401) from e

    def get_my_channel(self) -> Optional[Dict]:
        """Get the channel owned by the authorized account.

        Returns:
            Dictionary with channel info, or None if the account has no channel
        """
        response = self._execute(
            self.youtube.channels().list(part='snippet', mine=True),
            'Channel lookup'
        )

        items = response.get('items') or []
        if not items:
            return None

        channel = items[0]
        snippet = channel.get('snippet', {})
        return {
            'channel_id': channel['id'],
            'title': snippet.get('title', ''),
            'custom_url': snippet.get('customUrl', ''),
            'thumbnail_url': _best_thumbnail(snippet.get('thumbnails', {}), ['default']) or '',
            'channel_url': channel_url(channel['id'])
        }

    def list_my_videos(self, max_results: int = MAX_IMPORT_RESULTS) -> List[Dict]:
        """Get the most recent uploads of the authorized channel.

        Args:
            max_results: Maximum number of videos (YouTube caps a page at 50)

        Returns:
            List of video dictionaries, newest first
        """
        response = self._execute(
            self.youtube.search().list(
                part='snippet',
                forMine=True,
                type='video',
                maxResults=min(max_results, MAX_IMPORT_RESULTS),
                order='date'
            ),
            'Video search'
        )

        video_ids = [
            item['id']['videoId']
            for item in response.get('items', [])
            if item.get('id', {}).get('videoId')
        ]
        if not video_ids:
            return []

        details = self._execute(
            self.youtube.videos().list(part='snippet,contentDetails', id=','.join(video_ids)),
            'Video details'
        )

        videos = []
        for item in details.get('items', []):
            snippet = item.get('snippet', {})
            videos.append({
                'id': item['id'],
                'title': snippet.get('title', ''),
                'description': snippet.get('description', ''),
                'thumbnail_url': _best_thumbnail(snippet.get('thumbnails', {}), ['medium', 'default']),
                'published_at': snippet.get('publishedAt'),
                'duration': parse_iso8601_duration(item.get('contentDetails', {}).get('duration'))
            })

        return videos

    def get_video_details(self, video_id: str) -> Dict:
        """Get duration and best thumbnail for a video.

        Falls back to the static thumbnail URL when the API has none yet.
        """
        response = self._execute(
            self.youtube.videos().list(part='snippet,contentDetails', id=video_id),
            'Video details'
        )

        items = response.get('items') or []
        item = items[0] if items else {}
        thumbnail = _best_thumbnail(
            item.get('snippet', {}).get('thumbnails', {}),
            ['maxres', 'high', 'default']
        )

        return {
            'duration': parse_iso8601_duration(item.get('contentDetails', {}).get('duration', 'PT0S')),
            'thumbnail_url': thumbnail or f'https://img.youtube.com/vi/{video_id}/maxresdefault.jpg'
        }

    def upload_video(
        self,
        data: bytes,
        mime_type: str,
        title: str,
        description: str,
        tags: List[str],
        privacy_status: str,
        category_id: str = GAMING_CATEGORY_ID
    ) -> str:
        """Upload a video with a resumable upload.

        Args:
            data: Video bytes
            mime_type: Content type of the file
            title: Video title
            description: Video description
            tags: Video tags
            privacy_status: public, unlisted or private
            category_id: YouTube category (20 is Gaming)

        Returns:
            The new video id
        """
        media = MediaIoBaseUpload(
            io.BytesIO(data),
            mimetype=mime_type,
            chunksize=CHUNKSIZE,
            resumable=True
        )

        request_body = {
            'snippet': {
                'title': title,
                'description': description,
                'tags': tags,
                'categoryId': category_id
            },
            'status': {
                'privacyStatus': privacy_status
            }
        }

        request = self.youtube.videos().insert(
            part='snippet,status',
            body=request_body,
            media_body=media
        )

        response = None
        try:
            while response is None:
                status, response = request.next_chunk()
                if status:
                    logger.debug('Upload progress', progress=int(status.progress() * 100))
        except HttpError as e:
            status_code = e.resp.status if e.resp is not None else None
            raise YouTubeAPIError(f'Upload failed: {e.reason or e}', status_code=status_code) from e
        except RefreshError as e:
            raise YouTubeAPIError(f'Upload failed: {e}', status_code=401) from e

        return response['id']

    def delete_video(self, video_id: str) -> None:
        """Delete a video from the authorized channel."""
        self._execute(self.youtube.videos().delete(id=video_id), 'Video delete')
