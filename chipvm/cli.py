"""
Command line frontends: an interactive pygame window and a headless runner.

    chipvm play <rom> [--scale 10] [--delay 1.0] [--seed N] [--color-scheme classic]
    chipvm run <rom> [--steps 1000] [--png frame.png] [--seed N]
"""

import argparse
import sys
import time
from typing import List, Optional

from pydantic import ValidationError

from chipvm.config import RunConfig
from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT
from chipvm.errors import Chip8Error
from chipvm.logging import EmulatorLogger
from chipvm.machine import Machine
from chipvm.rendering import create_color_scheme, save_frame

# Keyboard layout: 1 2 3 4 / Q W E R / A S D F / Z X C V
KEY_LAYOUT = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chipvm", description="CHIP-8 virtual machine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    play = subparsers.add_parser("play", help="Run a ROM in a pygame window")
    play.add_argument("rom", help="Path to the ROM image")
    play.add_argument("--scale", type=int, default=10, help="Window pixels per CHIP-8 pixel (default: 10)")
    play.add_argument("--delay", type=float, default=1.0, help="Milliseconds between steps (default: 1.0)")

    run = subparsers.add_parser("run", help="Run a ROM without a window")
    run.add_argument("rom", help="Path to the ROM image")
    run.add_argument("--steps", type=int, default=1000, help="Instructions to execute (default: 1000)")
    run.add_argument("--png", default=None, help="Write the final frame to this image file")
    run.add_argument("--scale", type=int, default=8, help="Pixels per CHIP-8 pixel in the image (default: 8)")
    run.add_argument("--no-progress", dest="progress", action="store_false", help="Hide the progress bar")

    for sub in (play, run):
        sub.add_argument("--seed", type=int, default=None, help="Random seed for CXNN")
        sub.add_argument("--color-scheme", default="classic", help="Display colors (default: classic)")
        sub.add_argument("--log-level", default="INFO", help="Console log level (default: INFO)")

    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    values = dict(
        rom=args.rom,
        scale=args.scale,
        seed=args.seed,
        color_scheme=args.color_scheme,
        log_level=args.log_level,
    )
    if args.command == "play":
        values["cycle_delay"] = args.delay
    else:
        values.update(steps=args.steps, png=args.png, progress=args.progress)
    return RunConfig(**values)


def run_headless(config: RunConfig, logger: EmulatorLogger) -> Machine:
    """Load the ROM, run ``config.steps`` instructions, optionally dump a frame."""
    machine = Machine(seed=config.seed, logger=logger)
    machine.load_file(config.rom)
    try:
        machine.run(config.steps, progress=config.progress)
    finally:
        if config.png:
            save_frame(machine.framebuffer(), config.png, config.scale, config.color_scheme)
            logger.info(f"Saved frame to {config.png}")
    return machine


def run_window(config: RunConfig, logger: EmulatorLogger) -> Machine:
    """Interactive loop: poll input, step when the delay has elapsed, redraw."""
    import pygame

    key_map = {pygame.key.key_code(name): key for name, key in KEY_LAYOUT.items()}
    on_color, off_color = create_color_scheme(config.color_scheme)

    machine = Machine(seed=config.seed, logger=logger)
    machine.load_file(config.rom)

    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH * config.scale, SCREEN_HEIGHT * config.scale))
    pygame.display.set_caption("chipvm")

    last_cycle = time.perf_counter()
    running = True
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
                elif event.type in (pygame.KEYDOWN, pygame.KEYUP) and event.key in key_map:
                    machine.set_key(key_map[event.key], event.type == pygame.KEYDOWN)

            now = time.perf_counter()
            if (now - last_cycle) * 1000.0 <= config.cycle_delay:
                continue
            last_cycle = now

            machine.step()

            frame = machine.framebuffer()
            screen.fill(off_color)
            for x, y in zip(*frame.nonzero()):
                rect = pygame.Rect(x * config.scale, y * config.scale, config.scale, config.scale)
                pygame.draw.rect(screen, on_color, rect)
            pygame.display.flip()
    finally:
        pygame.quit()
    return machine


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    logger = EmulatorLogger(log_level=config.log_level)
    try:
        if args.command == "play":
            run_window(config, logger)
        else:
            run_headless(config, logger)
    except (Chip8Error, OSError) as e:
        logger.critical(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
