def format_file_size(size):
    """Render a byte count as B, KB, MB or GB with one decimal."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.1f} GB"


def total_pages(total, size):
    """Number of pages needed to show `total` items `size` at a time."""
    if size <= 0:
        return 0
    return (total + size - 1) // size
