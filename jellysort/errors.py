class JellySortError(RuntimeError):
    """Base error type."""


class ConfigError(JellySortError):
    """Settings file or override is invalid."""


class ScanError(JellySortError):
    """Scan root cannot be walked."""


class SidecarScanError(JellySortError):
    """Listing a video's directory for companion files failed."""


class ManifestError(JellySortError):
    """Manifest could not be written or read."""
