"""YouTube service exceptions."""


class YouTubeError(Exception):
    """Base exception for YouTube service errors."""

    pass


class QuotaExhaustedError(YouTubeError):
    """Raised when every API key in the pool has hit its quota."""

    pass


class CaptionDownloadError(YouTubeError):
    """Raised when a caption track cannot be downloaded or parsed."""

    pass
