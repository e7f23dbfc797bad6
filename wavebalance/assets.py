from __future__ import annotations
import pygame

class Fonts:
    def __init__(self, size: int):
        self.l  = pygame.font.SysFont("Arial", max(16, int(size*0.52)), bold=True)
        self.s  = pygame.font.SysFont("Arial", max(12, int(size*0.27)))
        self.xs = pygame.font.SysFont("Arial", max(11, int(size*0.22)))

def make_fonts(size: int) -> Fonts:
    if not pygame.font.get_init():
        pygame.font.init()
    return Fonts(size)
