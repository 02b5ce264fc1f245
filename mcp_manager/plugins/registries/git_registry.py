"""Git-backed registry of provider manifests."""

from pathlib import Path

import git

from mcp_manager.core.errors import SourceUnavailableError
from mcp_manager.core.models import ProviderSummary
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.plugins.registries.abstract_registry import AbstractRegistry
from mcp_manager.plugins.registries.manifests import read_manifest_dir
from mcp_manager.utils.url import is_file_url, is_git_url, resolve_file_path


class GitRegistry(AbstractRegistry):
    """Provider manifests kept in a git repository.

    Remote repositories are cloned into ``<registries_dir>/<name>`` and
    pulled on every listing.  ``file://`` URLs and plain paths are read in
    place without touching their git state.  Manifests live in
    ``servers/`` when that directory exists, otherwise in the repository
    root.
    """

    REGISTRY_TYPE = "git"

    def __init__(self, name: str, url: str, registries_dir: Path):
        """Initialize a git registry.

        Args:
            name: Registry name
            url: Git repository URL or local path
            registries_dir: Base directory where clones are stored

        Note: Does not clone the repository; the first listing does.
        """
        super().__init__(name, url)
        self.registries_dir = registries_dir
        if is_file_url(url):
            self.local_path = resolve_file_path(url)
        else:
            self.local_path = registries_dir / name

    @classmethod
    def can_handle_url(cls, url: str) -> bool:
        return is_git_url(url)

    @property
    def is_local(self) -> bool:
        return is_file_url(self.url)

    def manifest_dir(self) -> Path:
        servers = self.local_path / "servers"
        return servers if servers.is_dir() else self.local_path

    def update(self) -> None:
        """Clone the repository, or fetch and pull it if already cloned.

        Raises:
            SourceUnavailableError: If git fails
        """
        if self.is_local:
            if not self.local_path.is_dir():
                raise SourceUnavailableError(self.name, f"{self.local_path} does not exist")
            return

        if not self.local_path.exists():
            message(f"Cloning '{self.name}' from {self.url}...", MessageType.INFO, VerbosityLevel.EXTRA_VERBOSE)
            try:
                git.Repo.clone_from(self.url, self.local_path)
            except git.exc.GitCommandError as e:
                raise SourceUnavailableError(self.name, f"clone failed: {e}") from e
            message(f"Cloned '{self.name}'", MessageType.SUCCESS, VerbosityLevel.VERBOSE)
            return

        message(f"Updating '{self.name}'...", MessageType.INFO, VerbosityLevel.EXTRA_VERBOSE)
        try:
            repo = git.Repo(self.local_path)

            if repo.remotes.origin.url != self.url:
                message(
                    f"Registry '{self.name}' remote URL mismatch. "
                    f"Expected: {self.url}, "
                    f"Got: {repo.remotes.origin.url}",
                    MessageType.WARNING,
                    VerbosityLevel.ALWAYS,
                )

            message(f"Fetching changes for '{self.name}'...", MessageType.DEBUG, VerbosityLevel.DEBUG)
            repo.remotes.origin.fetch()

            current_branch = repo.active_branch.name
            message(
                f"Pulling changes for '{self.name}' (branch: {current_branch})...",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
            repo.remotes.origin.pull(current_branch)
        except git.exc.InvalidGitRepositoryError as e:
            raise SourceUnavailableError(self.name, f"{self.local_path} is not a valid git repository") from e
        except (git.exc.GitCommandError, AttributeError, TypeError) as e:
            # AttributeError: no 'origin' remote; TypeError: detached HEAD
            raise SourceUnavailableError(self.name, f"update failed: {e}") from e

    def list_all(self) -> list[ProviderSummary]:
        self.update()
        summaries = read_manifest_dir(self.manifest_dir(), self.name)
        message(
            f"Registry '{self.name}': {len(summaries)} manifest entries",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        return summaries

    def head_commit(self) -> str | None:
        """Return the checked-out commit sha, if the registry is a git repository."""
        try:
            return git.Repo(self.local_path).head.commit.hexsha
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError, ValueError):
            return None
