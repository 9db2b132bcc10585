from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace

Measure = Callable[[str], float]

ELLIPSIS = '...'


@dataclass(frozen=True)
class PageContext:
    """Where the next block goes: page counters plus a top-down cursor in mm."""

    page_number: int
    total_pages: int
    cursor: float

    def advance(self, consumed: float) -> PageContext:
        if consumed < 0:
            raise ValueError(f'cursor can only move down, got {consumed}')
        return replace(self, cursor=self.cursor + consumed)

    def next_page(self, top: float) -> PageContext:
        if self.page_number >= self.total_pages:
            raise ValueError(f'page {self.page_number + 1} exceeds total of {self.total_pages}')
        return replace(self, page_number=self.page_number + 1, cursor=top)

    def remaining(self, bottom: float) -> float:
        return max(0.0, bottom - self.cursor)

    def fits(self, height: float, bottom: float) -> bool:
        return self.cursor + height <= bottom + 1e-9

    @property
    def counter_label(self) -> str:
        return f'{self.page_number}/{self.total_pages}'


def fit_within_box(natural_w: float, natural_h: float, max_w: float, max_h: float) -> tuple[float, float]:
    """Scale ``natural_w x natural_h`` to the largest size inside ``max_w x max_h``.

    Width is constrained first; if the height still overflows the box the
    size shrinks again to the height bound. The result keeps the natural aspect
    ratio, never exceeds either bound and touches at least one of them.
    """
    if natural_w <= 0 or natural_h <= 0:
        raise ValueError(f'natural size must be positive, got {natural_w}x{natural_h}')
    if max_w <= 0 or max_h <= 0:
        raise ValueError(f'box must be positive, got {max_w}x{max_h}')

    aspect = natural_w / natural_h
    w = float(max_w)
    h = w / aspect
    if h > max_h:
        h = float(max_h)
        w = min(float(max_w), h * aspect)
    return w, h


def center_x(content_width: float, page_width: float) -> float:
    return (page_width - content_width) / 2


def _split_word(word: str, max_width: float, measure: Measure) -> list[str]:
    pieces: list[str] = []
    current = ''
    for ch in word:
        candidate = current + ch
        if current and measure(candidate) > max_width:
            pieces.append(current)
            current = ch
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def wrap_text(text: str, max_width: float, measure: Measure) -> list[str]:
    """Greedy word wrap; explicit newlines start new paragraphs."""
    lines: list[str] = []
    for paragraph in str(text or '').replace('\r\n', '\n').split('\n'):
        words = paragraph.split()
        if not words:
            if lines:
                lines.append('')
            continue
        current = ''
        for word in words:
            candidate = f'{current} {word}' if current else word
            if measure(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            if measure(word) <= max_width:
                current = word
                continue
            pieces = _split_word(word, max_width, measure)
            lines.extend(pieces[:-1])
            current = pieces[-1]
        if current:
            lines.append(current)
    while lines and not lines[-1]:
        lines.pop()
    return lines


def clip_lines(lines: list[str], max_lines: int, measure: Measure, max_width: float) -> list[str]:
    if max_lines <= 0:
        return []
    if len(lines) <= max_lines:
        return list(lines)
    kept = list(lines[:max_lines])
    last = kept[-1].rstrip()
    while last and measure(last + ELLIPSIS) > max_width:
        last = last[:-1].rstrip()
    kept[-1] = last + ELLIPSIS
    return kept
