class ClipFeedError(Exception):
    """Base class for clipfeed errors."""

    pass


class ValidationError(ClipFeedError):
    """Raised when a candidate upload fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class ProbeError(ClipFeedError):
    """Raised when the media duration cannot be read."""

    pass


class ProbeTimeoutError(ProbeError):
    """Raised when probing the media duration exceeds its deadline."""

    pass


class ThumbnailError(ClipFeedError):
    """Raised when a thumbnail cannot be generated."""

    pass


class ThumbnailTimeoutError(ThumbnailError):
    """Raised when thumbnail extraction exceeds its deadline."""

    pass


class CanvasUnavailableError(ThumbnailError):
    """Raised when no frame rasterizer is available."""

    pass


class AuthenticationError(ClipFeedError):
    """Raised when an upload is attempted without a signed-in user."""

    pass


class NetworkError(ClipFeedError):
    """Raised when an object store or record store call fails."""

    pass


class UploadInProgressError(ClipFeedError):
    """Raised when an upload is started while another is still running."""

    pass


class InvalidTransitionError(ClipFeedError):
    """Raised on an upload stage transition missing from the table."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Invalid upload transition: {current.value} -> {target.value}")
