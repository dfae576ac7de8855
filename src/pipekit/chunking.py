"""Split long chat messages into postable chunks.

Chat webhooks reject messages over a size limit. Messages are split on line
boundaries; when a split lands inside a fenced code block, the current chunk
gets a closing fence and the next one reopens it, so every chunk renders
with balanced fences.
"""

from __future__ import annotations

FENCE = "```"
DEFAULT_MESSAGE_LIMIT = 4000

# Room kept free for the closing "\n```" of a chunk split inside a code block
_FENCE_RESERVE = len(FENCE) + 1


def split_message(text: str, limit: int = DEFAULT_MESSAGE_LIMIT) -> list[str]:
    """Split text into chunks no longer than limit.

    Text shorter than limit is returned unchanged as the only chunk. Longer
    text is split into lines (blank lines are dropped) and packed greedily.

    Args:
        text: Message text, may contain ``` fenced code blocks.
        limit: Maximum length of a single chunk.

    Returns:
        List of non-empty chunks.

    Raises:
        ValueError: If limit is too small to hold a reopened code block.
    """
    if len(text) < limit:
        return [text]

    budget = limit - _FENCE_RESERVE
    # Longest line that still fits in a chunk that starts with a reopened fence
    max_line = budget - _FENCE_RESERVE
    if max_line < len(FENCE):
        raise ValueError(
            f"Message limit {limit} is too small, need at least {2 * _FENCE_RESERVE + len(FENCE)}"
        )

    chunks: list[str] = []
    current = ""
    in_code_block = False
    # Set while the last line of current is the one that opened the code block
    opened_by_last = False

    for line in text.split("\n"):
        if not line:
            continue
        for piece in _wrap(line, max_line):
            candidate = f"{current}\n{piece}" if current else piece
            if len(candidate) <= budget:
                current = candidate
            elif in_code_block:
                current = _split_in_code_block(chunks, current, piece, budget, opened_by_last)
            else:
                chunks.append(current)
                current = piece
            toggles = piece.count(FENCE) % 2 == 1
            if toggles:
                in_code_block = not in_code_block
            opened_by_last = toggles and in_code_block

    if current:
        chunks.append(current)
    return [chunk for chunk in chunks if chunk]


def _split_in_code_block(
    chunks: list[str],
    current: str,
    piece: str,
    budget: int,
    opened_by_last: bool,
) -> str:
    """Finish a chunk while a code block is open, returning the next chunk's start."""
    if opened_by_last and "\n" in current:
        # Move the opening line along instead of leaving an empty block behind
        head, _, opener = current.rpartition("\n")
        moved = f"{opener}\n{piece}"
        if len(moved) <= budget:
            chunks.append(head)
            return moved

    chunks.append(f"{current}\n{FENCE}")
    if piece.strip() == FENCE:
        # The closing fence already ended the block
        return ""
    return f"{FENCE}\n{piece}"


def _wrap(line: str, width: int) -> list[str]:
    """Hard-wrap a single line into pieces of at most width characters.

    Cuts never fall inside a ``` marker, so each piece counts the same
    markers the whole line does.
    """
    if len(line) <= width:
        return [line]

    fence_starts = []
    index = line.find(FENCE)
    while index != -1:
        fence_starts.append(index)
        index = line.find(FENCE, index + len(FENCE))

    pieces = []
    start = 0
    while len(line) - start > width:
        end = start + width
        for fence_start in fence_starts:
            if fence_start < end < fence_start + len(FENCE):
                end = fence_start
                break
        pieces.append(line[start:end])
        start = end
    pieces.append(line[start:])
    return pieces
