from __future__ import annotations

import pytest

pygame = pytest.importorskip("pygame")

from wavebalance.settings import CHART_H, CHART_W
from wavebalance.ui.chart import plot_points, render_ratio_chart, save_ratio_chart


RECORDS = [
    {"wave": 1, "durationMs": 10_000, "ratio": 0.8},
    {"wave": 2, "durationMs": 10_500, "ratio": 1.2},
    {"wave": 3, "durationMs": 11_500, "ratio": 1e9},
]


def test_plot_points_clamp_out_of_range():
    rect = pygame.Rect(0, 0, 100, 50)
    pts = plot_points([0.0, 2.5, 1e9], ratio_max=5.0, rect=rect)
    assert pts[0] == (0, 50, False)
    assert pts[1] == (50, 25, False)
    assert pts[2] == (100, 0, True)


def test_render_surface_size():
    pygame.init()
    try:
        surf = render_ratio_chart(RECORDS, title="test")
        assert surf.get_size() == (CHART_W, CHART_H)
    finally:
        pygame.quit()


def test_save_png(tmp_path):
    p = save_ratio_chart(RECORDS, str(tmp_path / "ratio.png"))
    assert (tmp_path / "ratio.png").stat().st_size > 0
    assert p.endswith("ratio.png")
