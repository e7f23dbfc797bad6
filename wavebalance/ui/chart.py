from __future__ import annotations
import os
from typing import List, Optional, Sequence, Tuple

# headless: charts are rendered off-screen and saved
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pygame

from ..assets import make_fonts
from ..settings import (
    CHART_W, CHART_H, CHART_MARGIN, CHART_RATIO_MAX,
    C_BG, C_UI_BG, C_GRID, C_TEXT, C_RATIO, C_DURATION, C_TARGET, C_CLAMPED,
)


def plot_points(ratios: Sequence[float], ratio_max: float, rect: pygame.Rect) -> List[Tuple[int, int, bool]]:
    """Screen points (x, y, clamped) for a ratio series inside `rect`."""
    n = len(ratios)
    pts: List[Tuple[int, int, bool]] = []
    for i, g in enumerate(ratios):
        x = rect.left + (rect.w * i // max(1, n - 1) if n > 1 else rect.w // 2)
        clamped = g > ratio_max or g < 0
        v = min(max(g, 0.0), ratio_max)
        y = rect.bottom - int(rect.h * (v / ratio_max))
        pts.append((x, y, clamped))
    return pts


def render_ratio_chart(records: Sequence[dict], title: str = "",
                       ratio_max: float = CHART_RATIO_MAX,
                       size: Tuple[int, int] = (CHART_W, CHART_H)) -> pygame.Surface:
    """Balance ratio per wave (line) over wave durations (bars) on one surface.

    Expects the display records (clamped "ratio", "durationMs").
    """
    w, h = size
    surf = pygame.Surface((w, h))
    surf.fill(C_BG)
    fonts = make_fonts(CHART_MARGIN)

    plot = pygame.Rect(CHART_MARGIN, CHART_MARGIN, w - 2 * CHART_MARGIN, h - 2 * CHART_MARGIN)
    pygame.draw.rect(surf, C_UI_BG, plot)

    # grid + y labels (ratio)
    steps = 5
    for i in range(steps + 1):
        y = plot.bottom - plot.h * i // steps
        pygame.draw.line(surf, C_GRID, (plot.left, y), (plot.right, y), 1)
        lbl = fonts.xs.render(f"{ratio_max * i / steps:.1f}", True, C_TEXT)
        surf.blit(lbl, (plot.left - lbl.get_width() - 6, y - lbl.get_height() // 2))

    n = len(records)
    if n:
        # duration bars, scaled to the longest wave
        t_max = max(float(r.get("durationMs", 0.0)) for r in records) or 1.0
        bar_w = max(2, plot.w // max(1, n) - 4)
        for i, r in enumerate(records):
            bh = int(plot.h * 0.45 * float(r.get("durationMs", 0.0)) / t_max)
            x = plot.left + (plot.w * i // max(1, n - 1) if n > 1 else plot.w // 2) - bar_w // 2
            pygame.draw.rect(surf, C_DURATION, (x, plot.bottom - bh, bar_w, bh))

        # g == 1 reference
        if ratio_max >= 1.0:
            y1 = plot.bottom - int(plot.h * (1.0 / ratio_max))
            pygame.draw.line(surf, C_TARGET, (plot.left, y1), (plot.right, y1), 2)

        pts = plot_points([float(r.get("ratio", 0.0)) for r in records], ratio_max, plot)
        if len(pts) >= 2:
            pygame.draw.lines(surf, C_RATIO, False, [(x, y) for x, y, _ in pts], 3)
        for x, y, clamped in pts:
            pygame.draw.circle(surf, C_CLAMPED if clamped else C_RATIO, (x, y), 4)

        # x labels: first, last, and a few in between
        every = max(1, n // 10)
        for i, r in enumerate(records):
            if i % every and i != n - 1:
                continue
            x = pts[i][0]
            lbl = fonts.xs.render(str(r.get("wave", i + 1)), True, C_TEXT)
            surf.blit(lbl, (x - lbl.get_width() // 2, plot.bottom + 6))

    head = fonts.l.render(title or "Balance ratio per wave", True, C_TEXT)
    surf.blit(head, (CHART_MARGIN, (CHART_MARGIN - head.get_height()) // 2))
    legend = fonts.s.render("line: ratio g_n   bars: wave duration   yellow: g = 1", True, (180, 180, 190))
    surf.blit(legend, (CHART_MARGIN, h - CHART_MARGIN + 24))
    return surf


def save_ratio_chart(records: Sequence[dict], path: str, title: str = "",
                     ratio_max: Optional[float] = None) -> str:
    pygame.init()
    try:
        surf = render_ratio_chart(records, title=title, ratio_max=ratio_max or CHART_RATIO_MAX)
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        pygame.image.save(surf, path)
    finally:
        pygame.quit()
    return path
