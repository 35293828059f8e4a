"""SVG shield badge for a secrets grade, shields.io flat style."""

from __future__ import annotations

from xml.sax.saxutils import escape

GRADE_COLORS = {
    "A": "#4c1",
    "B": "#97ca00",
    "C": "#dfb317",
    "D": "#fe7d37",
    "F": "#e05d44",
}
UNKNOWN_COLOR = "#9f9f9f"

# Rough Verdana 11px advance
_CHAR_WIDTH = 7
_PADDING = 10


def _text_width(text: str) -> int:
    return len(text) * _CHAR_WIDTH + _PADDING


def generate_badge(score: int, grade: str, label: str = "secrets") -> str:
    """Render a two-part badge: ``label | grade (score/100)``."""
    color = GRADE_COLORS.get(grade, UNKNOWN_COLOR)
    value = f"{grade} ({score}/100)"
    left = _text_width(label)
    right = _text_width(value)
    width = left + right
    label_x = left / 2
    value_x = left + right / 2
    label, value = escape(label), escape(value)

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="20" role="img" aria-label="{label}: {value}">',
        f"  <title>{label}: {value}</title>",
        '  <linearGradient id="s" x2="0" y2="100%">',
        '    <stop offset="0" stop-color="#bbb" stop-opacity=".1"/>',
        '    <stop offset="1" stop-opacity=".1"/>',
        "  </linearGradient>",
        f'  <clipPath id="r"><rect width="{width}" height="20" rx="3" fill="#fff"/></clipPath>',
        '  <g clip-path="url(#r)">',
        f'    <rect width="{left}" height="20" fill="#555"/>',
        f'    <rect x="{left}" width="{right}" height="20" fill="{color}"/>',
        f'    <rect width="{width}" height="20" fill="url(#s)"/>',
        "  </g>",
        '  <g fill="#fff" text-anchor="middle" font-family="Verdana,Geneva,DejaVu Sans,sans-serif" font-size="11">',
    ]
    for x, text in ((label_x, label), (value_x, value)):
        parts.append(f'    <text x="{x}" y="15" fill="#010101" fill-opacity=".3">{text}</text>')
        parts.append(f'    <text x="{x}" y="14">{text}</text>')
    parts.extend(["  </g>", "</svg>"])
    return "\n".join(parts)
