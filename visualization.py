"""
Handles the visualization of the bubble simulation using Pygame.

The renderer keeps its own display record (one color per bubble), joined
to the physics state by arena index and generation. The physics modules
never import this one.
"""
import logging
import pygame
import numpy as np
from particle import ParticleSystem
from constants import (
    BACKGROUND_COLOR, BUBBLE_LINE_WIDTH, FPS, FULLSCREEN, WINDOW_WIDTH,
    WINDOW_HEIGHT, HIGHLIGHT_RADIUS_X_RATIO, HIGHLIGHT_RADIUS_Y_RATIO,
    HIGHLIGHT_OFFSET_RATIO, HIGHLIGHT_ANGLE_DEGREES, HIGHLIGHT_COLOR
)
from typing import Dict, Optional, Tuple

# --- Data Contracts ---
#
# draw_bubble(surface, position, radius, color, line_width, highlight) -> None:
#   - Inputs:
#     - surface: Any pygame.Surface, on- or off-screen.
#     - position: (x, y) bubble centre.
#     - radius: float > 0.
#     - color: Outline color.
#     - highlight: Optional pre-rendered highlight surface for this radius.
#   - Side Effects: Draws the outline circle and highlight ellipse.
#
# class Visualizer:
#   - __init__(self, vis_params: Optional[dict] = None, seed: Optional[int] = None):
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - viewport_size(self) -> Tuple[int, int]:
#     - Outputs: The current drawable size. Read fresh every call, since
#       the window may be resized between ticks.
#
#   - draw(self, particles: ParticleSystem) -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: Clears and redraws the whole frame, handles Pygame
#       events and waits on the frame clock.


def random_display_color(rng: np.random.Generator) -> pygame.Color:
    """Picks a uniformly random 24-bit color."""
    value = int(rng.integers(0, 1 << 24))
    return pygame.Color((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)


def render_highlight(radius: float) -> pygame.Surface:
    """
    Pre-renders the rotated white ellipse drawn in a bubble's upper-left quadrant.
    """
    rx = max(1, int(round(radius * HIGHLIGHT_RADIUS_X_RATIO)))
    ry = max(1, int(round(radius * HIGHLIGHT_RADIUS_Y_RATIO)))
    ellipse_surf = pygame.Surface((rx * 2, ry * 2), pygame.SRCALPHA)
    pygame.draw.ellipse(ellipse_surf, HIGHLIGHT_COLOR, ellipse_surf.get_rect())
    # Pygame rotates counter-clockwise; negate for a clockwise tilt on a y-down screen.
    return pygame.transform.rotate(ellipse_surf, -HIGHLIGHT_ANGLE_DEGREES)


def draw_bubble(
    surface: pygame.Surface,
    position: Tuple[float, float],
    radius: float,
    color,
    line_width: int = BUBBLE_LINE_WIDTH,
    highlight: Optional[pygame.Surface] = None,
) -> None:
    """Draws one bubble: a transparent circle with a colored outline plus its highlight."""
    x, y = position
    pygame.draw.circle(surface, color, (x, y), radius, line_width)

    if highlight is None:
        highlight = render_highlight(radius)
    offset = radius * HIGHLIGHT_OFFSET_RATIO
    rect = highlight.get_rect(center=(int(x - offset), int(y - offset)))
    surface.blit(highlight, rect)


class Visualizer:
    """
    Renders the bubble population to a Pygame window.
    """
    def __init__(self, vis_params: Optional[dict] = None, seed: Optional[int] = None):
        """
        Initializes Pygame and the display window.
        """
        vis_params = vis_params if vis_params is not None else {}
        pygame.init()

        if vis_params.get('fullscreen', FULLSCREEN):
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width = vis_params.get('window_width', WINDOW_WIDTH)
            height = vis_params.get('window_height', WINDOW_HEIGHT)
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

        pygame.display.set_caption("Bubbles")
        self.clock = pygame.time.Clock()
        self.line_width = vis_params.get('line_width', BUBBLE_LINE_WIDTH)

        # Display record, keyed by arena index. Separate seed stream from physics.
        self.rng = np.random.default_rng(None if seed is None else seed + 1)
        self.colors: list = []
        self.color_generations: list = []
        self.highlight_cache: Dict[float, pygame.Surface] = {}

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def viewport_size(self) -> Tuple[int, int]:
        return self.screen.get_size()

    def _sync_colors(self, particles: ParticleSystem) -> None:
        """Assigns colors to new bubbles and re-rolls colors of recycled slots."""
        generations = particles.generations
        for i in range(len(self.colors)):
            if self.color_generations[i] != generations[i]:
                self.colors[i] = random_display_color(self.rng)
                self.color_generations[i] = int(generations[i])
        for i in range(len(self.colors), particles.particle_count):
            self.colors.append(random_display_color(self.rng))
            self.color_generations.append(int(generations[i]))

    def _highlight_for(self, radius: float) -> pygame.Surface:
        surf = self.highlight_cache.get(radius)
        if surf is None:
            surf = render_highlight(radius)
            self.highlight_cache[radius] = surf
            logging.debug(f"Pre-rendered highlight surface for radius {radius}.")
        return surf

    def draw(self, particles: ParticleSystem) -> bool:
        """
        Draws all bubbles and handles events.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("ESC key pressed. Shutting down visualizer.")
                    return False

            if event.type == pygame.VIDEORESIZE:
                logging.info(f"Window resized to {event.w}x{event.h}.")

        self._sync_colors(particles)

        self.screen.fill(BACKGROUND_COLOR)
        for i in range(particles.particle_count):
            radius = float(particles.radii[i])
            pos = particles.positions[i]
            draw_bubble(
                self.screen, (pos[0], pos[1]), radius, self.colors[i],
                self.line_width, self._highlight_for(radius)
            )

        pygame.display.flip()
        self.clock.tick(FPS)
        return True

    def close(self):
        """Shuts down Pygame."""
        pygame.quit()
