"""Registry URL helpers for mcp-manager."""

from pathlib import Path


def is_file_url(url: str) -> bool:
    """Check if a URL is a file:// URL or a plain filesystem path.

    Args:
        url: The URL to check

    Returns:
        True if it's a file:// URL or plain path, False otherwise
    """
    # Reject URLs with leading/trailing whitespace
    if url != url.strip():
        return False

    if url.startswith("file://"):
        return True

    # Absolute, home-relative or explicitly relative paths
    if url.startswith(("/", "~", "./", "../")):
        return True

    return url in (".", "..")


def resolve_file_path(url: str) -> Path:
    """Resolve a file:// URL (or plain path) to an absolute path.

    Args:
        url: The file:// URL to resolve

    Returns:
        Resolved absolute Path
    """
    path_str = url[7:] if url.startswith("file://") else url
    return Path(path_str).expanduser().resolve()


def is_http_url(url: str) -> bool:
    """Check if a URL uses the http or https scheme."""
    return url.startswith(("http://", "https://"))


def is_git_url(url: str) -> bool:
    """Check if a URL looks like a git remote.

    Args:
        url: The URL to check

    Returns:
        True if this looks like a git URL
    """
    git_patterns = [
        url.startswith("git@"),
        url.startswith("git://"),
        url.startswith("ssh://"),
        is_http_url(url) and url.endswith(".git"),
        "github.com" in url,
        "gitlab.com" in url,
        "bitbucket.org" in url,
    ]
    return any(git_patterns)
