"""Path helpers shared by the patch runner."""


def normalize_path(path: str) -> str:
    """Normalize a repo-relative path to forward slashes.

    Examples:
        normalize_path("src\\\\utils\\\\file.ts") -> "src/utils/file.ts"
        normalize_path("./src/app.tsx") -> "src/app.tsx"
    """
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized
