"""Size-bounded page HTML handed to the completion client."""

from typing import List


def split_by_chunks(html: str, chunk_size: int) -> List[str]:
    """Split HTML into ordered pieces no longer than ``chunk_size``.

    Cuts land just before a ``<`` where one exists inside the window so tags
    stay intact; otherwise the piece is cut hard at the budget. Joining the
    result gives back the input.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")
    if len(html) <= chunk_size:
        return [html] if html else []

    chunks = []
    start = 0
    while start < len(html):
        end = start + chunk_size
        if end >= len(html):
            chunks.append(html[start:])
            break
        cut = html.rfind("<", start + 1, end + 1)
        if cut <= start:
            cut = end
        chunks.append(html[start:cut])
        start = cut
    return chunks


class HtmlContext:
    """Captured page HTML bounded to the model's input budget."""

    def __init__(self, html: str, chunk_size: int):
        self.html = html or ""
        self.chunk_size = chunk_size
        self.chunks = split_by_chunks(self.html, chunk_size)

    @property
    def first(self) -> str:
        return self.chunks[0] if self.chunks else ""

    @property
    def is_chunked(self) -> bool:
        return len(self.chunks) > 1

    def __len__(self) -> int:
        return len(self.chunks)

    def __bool__(self) -> bool:
        return bool(self.chunks)
