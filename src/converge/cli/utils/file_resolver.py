"""File path resolution utilities for CLI."""

from pathlib import Path


def resolve_file_path(file_path: str) -> Path:
    """
    Resolve a declaration file path against the current directory.
    
    Args:
        file_path: User-provided file path or name
        
    Returns:
        Resolved Path object
        
    Raises:
        FileNotFoundError: If the file does not exist or is a directory
    """
    path = Path(file_path)
    resolved_path = path if path.is_absolute() else Path.cwd() / path
    resolved_path = resolved_path.resolve()
    
    if not resolved_path.exists():
        raise FileNotFoundError(
            f"File not found: {file_path}. Please check the file path and try again."
        )
    
    if not resolved_path.is_file():
        raise FileNotFoundError(
            f"Path is not a file: {file_path}. Please provide a declaration file."
        )
    
    return resolved_path
