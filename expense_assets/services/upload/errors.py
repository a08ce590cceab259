"""Upload exceptions."""


class AssetUploadError(Exception):
    """Base exception for asset upload errors."""
    pass


class ImageSourceError(AssetUploadError):
    """The local image could not be read or decoded."""
    pass


class ReceiptUploadError(AssetUploadError):
    """
    Transfer or URL resolution failed.

    The underlying provider error is kept as __cause__.
    """

    def __init__(self, message: str, file_path: str = ""):
        super().__init__(message)
        self.file_path = file_path
