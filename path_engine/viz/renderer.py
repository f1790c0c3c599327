import math

import pygame

from path_engine.core.grid import CellState
from path_engine.viz.recorder import VideoRecorder
from path_engine.viz.replay import TraceReplay


class Renderer:
    COLOR_BG = (10, 10, 10)
    COLOR_GRID_LINE = (40, 40, 40)
    COLOR_TEXT = (255, 255, 255)
    COLOR_DISTANCE = (20, 20, 20)
    # Frontier: cells with a tentative distance that aren't visited yet
    COLOR_FRONTIER = (90, 60, 140)
    STATE_COLORS = {
        CellState.EMPTY: (30, 30, 30),
        CellState.OBSTACLE: (200, 200, 200),
        CellState.START: (40, 200, 80),
        CellState.END: (220, 60, 60),
        CellState.VISITED: (60, 100, 160),  # Blue tint
        CellState.PATH: (255, 215, 0),  # Gold
    }

    def __init__(self, replay: TraceReplay, width=1280, height=720, steps_per_frame=1, record=False,
                 output_file=None):
        self.replay = replay
        self.grid = replay.grid
        self.screen_width = width
        self.screen_height = height
        self.steps_per_frame = max(1, steps_per_frame)

        # Camera
        self.cell_size = 20.0  # Pixels per cell
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.zoom_speed = 1.1

        self.recorder = VideoRecorder(active=record, output_file=output_file)

        self.font = None
        self.small_font = None
        self.running = True
        self.paused = False
        self.single_step = False
        self.clock = None
        self.surface = None

    def fit_to_screen(self):
        """Auto-adjust zoom and pan to fit the entire grid on screen with padding."""
        padding = 40
        available_w = self.screen_width - (padding * 2)
        available_h = self.screen_height - (padding * 2)

        self.cell_size = min(available_w / self.grid.cols, available_h / self.grid.rows)

        self.offset_x = (self.screen_width - self.grid.cols * self.cell_size) / 2
        self.offset_y = (self.screen_height - self.grid.rows * self.cell_size) / 2

    def init_window(self):
        pygame.init()
        pygame.display.set_caption(f"Dijkstra Trace - {self.grid.rows}x{self.grid.cols}")
        self.surface = pygame.display.set_mode((self.screen_width, self.screen_height), pygame.RESIZABLE)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("Consolas", 16)
        self.small_font = pygame.font.SysFont("Consolas", 11)

        self.fit_to_screen()

    def handle_input(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

            elif event.type == pygame.VIDEORESIZE:
                self.screen_width, self.screen_height = event.w, event.h

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    self.paused = not self.paused
                elif event.key == pygame.K_RIGHT:
                    self.single_step = True
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    self.steps_per_frame *= 2
                elif event.key == pygame.K_MINUS:
                    self.steps_per_frame = max(1, self.steps_per_frame // 2)
                elif event.key == pygame.K_f:
                    self.fit_to_screen()
                elif event.key == pygame.K_ESCAPE:
                    self.running = False

            elif event.type == pygame.MOUSEWHEEL:
                # Zoom towards mouse
                mx, my = pygame.mouse.get_pos()
                wx = (mx - self.offset_x) / self.cell_size
                wy = (my - self.offset_y) / self.cell_size

                if event.y > 0:
                    self.cell_size *= self.zoom_speed
                else:
                    self.cell_size /= self.zoom_speed
                self.cell_size = max(0.5, min(200.0, self.cell_size))

                self.offset_x = mx - wx * self.cell_size
                self.offset_y = my - wy * self.cell_size

            elif event.type == pygame.MOUSEMOTION:
                if pygame.mouse.get_pressed()[0] or pygame.mouse.get_pressed()[2]:
                    self.offset_x += event.rel[0]
                    self.offset_y += event.rel[1]

    def advance(self):
        if self.replay.finished:
            return
        if self.paused and not self.single_step:
            return
        steps = 1 if self.paused else self.steps_per_frame
        self.single_step = False
        for _ in range(steps):
            if self.replay.finished:
                break
            self.replay.step()

    def draw_grid(self):
        self.surface.fill(self.COLOR_BG)

        # Culling: visible cell range
        start_c = max(0, int(-self.offset_x / self.cell_size))
        start_r = max(0, int(-self.offset_y / self.cell_size))
        end_c = min(self.grid.cols, int((self.screen_width - self.offset_x) / self.cell_size) + 1)
        end_r = min(self.grid.rows, int((self.screen_height - self.offset_y) / self.cell_size) + 1)

        size = int(self.cell_size) + 1
        draw_lines = self.cell_size > 6.0
        draw_labels = self.cell_size > 24.0
        distances = self.replay.distances

        for r in range(start_r, end_r):
            for c in range(start_c, end_c):
                cell = self.grid.locate((r, c))
                px = int(c * self.cell_size + self.offset_x)
                py = int(r * self.cell_size + self.offset_y)

                color = self.STATE_COLORS[cell.state]
                if cell.state == CellState.EMPTY and (r, c) in distances:
                    color = self.COLOR_FRONTIER
                pygame.draw.rect(self.surface, color, (px, py, size, size))

                if draw_lines:
                    pygame.draw.rect(self.surface, self.COLOR_GRID_LINE, (px, py, size, size), 1)

                if draw_labels and (r, c) in distances and not math.isinf(distances[(r, c)]):
                    lbl = self.small_font.render(f"{distances[(r, c)]:g}", True, self.COLOR_DISTANCE)
                    self.surface.blit(lbl, (px + 3, py + 2))

    def draw_hud(self):
        status = "Done" if self.replay.finished else ("Paused" if self.paused else "Running")
        if self.replay.finished:
            status += " - path found" if self.replay.found else " - no path"
        info = [
            f"FPS: {int(self.clock.get_fps())}",
            f"Size: {self.grid.rows}x{self.grid.cols}",
            f"Step: {self.replay.step_index}/{len(self.replay.trace)} (x{self.steps_per_frame})",
            f"Visited: {self.replay.visited_count}",
            f"Path: {len(self.replay.path)}",
            f"Status: {status}",
            "REC" if self.recorder.active else "",
        ]

        for i, text in enumerate(info):
            lbl = self.font.render(text, True, self.COLOR_TEXT)
            self.surface.blit(lbl, (10, 10 + i * 20))

    def run_loop(self, close_when_done=False):
        while self.running:
            self.handle_input()
            self.advance()

            self.draw_grid()
            self.draw_hud()
            pygame.display.flip()

            if self.recorder.active:
                self.recorder.capture_frame(self.surface)

            if close_when_done and self.replay.finished:
                self.running = False

            self.clock.tick(60)

        self.recorder.stop()
        pygame.quit()
