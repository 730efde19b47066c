"""Derive install directory names from repository URLs."""

GIT_SUFFIX = ".git"

# Names that would point at the destination root or its parent
RESERVED_NAMES = frozenset({".", ".."})


def resolve_target_name(url: str) -> str | None:
    """Get the directory name a repository is cloned under.

    The name is the last path segment of the URL with every ".git"
    removed, e.g. https://github.com/neovim/nvim-lspconfig.git gives
    nvim-lspconfig.

    Args:
        url: Repository URL

    Returns:
        Target name, or None if the URL has no "/" or the segment is
        empty, "." or ".."
    """
    _, sep, name = url.rpartition("/")
    if not sep:
        return None
    if GIT_SUFFIX in name:
        name = name.replace(GIT_SUFFIX, "")
    if name in RESERVED_NAMES:
        return None
    return name or None
