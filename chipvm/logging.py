"""Console logging for the chipvm emulator.

``ConsoleLogger`` prints leveled, optionally colored lines to stdout.
``scan_with_progress`` drives a tqdm bar from inside a compiled ``lax.scan``
through ``io_callback``.
"""

import sys
import time
from typing import Any, Callable, Dict, Optional

import jax
import jax.numpy as jnp
from jax.experimental import io_callback

from tqdm import tqdm

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ANSI_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
ANSI_RESET = "\033[0m"


class ConsoleLogger:
    """Leveled console logger.

    Lines look like ``[    1.25s][    INFO][chipvm] message``. Colors are only
    used when stdout is a terminal.
    """

    def __init__(
        self,
        name: str = "chipvm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.use_colors = use_colors and getattr(sys.stdout, "isatty", lambda: False)()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def _rank(self, level: str) -> int:
        level = level.upper()
        return LEVELS.index(level) if level in LEVELS else 1

    def _should_log(self, level: str) -> bool:
        return self._rank(level) >= self._rank(self.log_level)

    def _format_message(self, level: str, message: str) -> str:
        prefix = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        tag = f"[{level:>8s}]"
        if self.use_colors:
            tag = f"{ANSI_COLORS.get(level.upper(), '')}{tag}{ANSI_RESET}"
        return f"{prefix}{tag}[{self.name}] {message}"

    def log(self, level: str, message: str):
        if self._should_log(level):
            print(self._format_message(level, message), flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class EmulatorLogger(ConsoleLogger):
    """Logger with helpers for machine lifecycle events."""

    def __init__(self, name: str = "chipvm", **kwargs):
        super().__init__(name, **kwargs)

    def log_load(self, size: int, source: Optional[str] = None):
        """Log a program image being copied into memory."""
        origin = f" from {source}" if source else ""
        self.info(f"Loaded {size} bytes{origin} at 0x200")

    def log_fault(self, error: Exception):
        """Log a fault that stopped a step."""
        self.error(f"Step failed: {error}")

    def log_run_summary(self, steps: int, elapsed: float, registers: Dict[str, Any]):
        """Log instruction throughput and a register snapshot after a run."""
        rate = steps / elapsed if elapsed > 0 else 0.0
        self.info("=" * 60)
        self.info(f"Executed {steps} instructions in {elapsed:.2f}s ({rate:,.0f} Hz)")
        for key, value in registers.items():
            self.info(f"  {key}: {value}")
        self.info("=" * 60)


def build_tqdm_progress_bar(n: int, desc: Optional[str] = None) -> Callable:
    """Return a per-iteration hook that opens, advances and closes a tqdm bar.

    The bar advances in chunks of about a twentieth of ``n`` and is closed on
    the last iteration, so it always ends at ``n``.
    """
    desc = desc or f"Running ({n:,} instructions)"
    chunk = max(1, n // 20)
    bars = {}

    def _open():
        bars[0] = tqdm(total=n, desc=desc, unit="instr")

    def _advance(count):
        bars[0].update(int(count))

    def _close():
        bars.pop(0).close()

    def update(iter_num):
        done = iter_num + 1
        partial = done % chunk

        jax.lax.cond(
            iter_num == 0,
            lambda _: io_callback(_open, None, ordered=True),
            lambda _: None,
            operand=None,
        )
        jax.lax.cond(
            (partial == 0) | (done == n),
            lambda _: io_callback(_advance, None, jnp.where(partial == 0, chunk, partial), ordered=True),
            lambda _: None,
            operand=None,
        )
        jax.lax.cond(
            done == n,
            lambda _: io_callback(_close, None, ordered=True),
            lambda _: None,
            operand=None,
        )

    return update


def scan_with_progress(n: int, desc: Optional[str] = None) -> Callable:
    """Decorate a ``lax.scan`` body so an ``n``-long scan shows a progress bar.

    The scanned ``xs`` must be the iteration index (``jnp.arange(n)``), or a
    tuple whose first element is.
    """
    update = build_tqdm_progress_bar(n, desc)

    def decorator(func):
        def wrapper(carry, x):
            update(x[0] if isinstance(x, tuple) else x)
            return func(carry, x)

        return wrapper

    return decorator
