"""Plain data holders shared by the search components."""

from typing import Optional


def derive_orientation(width: Optional[int], height: Optional[int]) -> Optional[str]:
    """Orientation as stored in posts.orientation; None when a dimension is unknown."""
    if width is None or height is None:
        return None
    if width > height:
        return 'landscape'
    if height > width:
        return 'portrait'
    return 'square'


class Post:
    """A post row as seen by the search engine (read-only)."""

    def __init__(self, id: int, hash: str, width: Optional[int], height: Optional[int],
                 mime_type: str, imported_at=None, orientation: Optional[str] = None):
        self.id = id
        self.hash = hash
        self.width = width
        self.height = height
        self.mime_type = mime_type
        self.imported_at = imported_at
        self.orientation = orientation if orientation is not None else derive_orientation(width, height)

    @classmethod
    def from_row(cls, row) -> 'Post':
        keys = row.keys()
        return cls(
            id=row['id'],
            hash=row['hash'],
            width=row['width'],
            height=row['height'],
            mime_type=row['mime_type'],
            imported_at=row['imported_at'] if 'imported_at' in keys else None,
            orientation=row['orientation'] if 'orientation' in keys else None,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'hash': self.hash,
            'width': self.width,
            'height': self.height,
            'mimeType': self.mime_type,
            'orientation': self.orientation,
        }

    def __repr__(self):
        return f"Post(id={self.id}, hash={self.hash[:8]}...)"
