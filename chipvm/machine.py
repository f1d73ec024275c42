"""Stateful facade over the functional CHIP-8 core."""

import time
from functools import lru_cache
from typing import Optional, Union

import jax
import jax.numpy as jnp
import numpy as np

from chipvm.constants import MEMORY_SIZE, NUM_KEYS
from chipvm.decode import disassemble
from chipvm.emulator import step, run, load_program
from chipvm.errors import Fault, fault_error
from chipvm.logging import EmulatorLogger, scan_with_progress
from chipvm.state import EmulatorState, create_state


def _entropy_seed() -> int:
    return int(np.random.SeedSequence().entropy % (2 ** 32))


class Machine:
    """One CHIP-8 machine, owned by its caller.

    Wraps an immutable ``EmulatorState`` and swaps it on every operation. A
    step that faults raises the matching ``MachineFault`` and leaves the
    state exactly as it was before the step.

    Args:
        seed: Seed for the random number generator used by CXNN. Drawn from
            OS entropy when omitted.
        logger: Logger for lifecycle events. A default ``EmulatorLogger`` is
            created when omitted.
    """

    def __init__(self, seed: Optional[int] = None, logger: Optional[EmulatorLogger] = None):
        self.seed = _entropy_seed() if seed is None else seed
        self.logger = logger or EmulatorLogger(log_level="WARNING")
        self._state = create_state(jax.random.PRNGKey(self.seed))

    @property
    def state(self) -> EmulatorState:
        return self._state

    @property
    def pc(self) -> int:
        return int(self._state.pc)

    @property
    def index(self) -> int:
        return int(self._state.I)

    @property
    def registers(self) -> np.ndarray:
        return np.asarray(self._state.V)

    @property
    def sound_active(self) -> bool:
        return self.sound_timer() > 0

    def load(self, image: Union[bytes, bytearray], source: Optional[str] = None):
        """Copy a program image to 0x200. Registers, pc and the rest are kept."""
        self._state = load_program(self._state, bytes(image))
        self.logger.log_load(len(image), source)

    def load_file(self, path: str):
        """Read a ROM file from disk and load it."""
        with open(path, "rb") as f:
            image = f.read()
        self.load(image, source=path)

    def _word_at(self, address: int) -> int:
        memory = np.asarray(self._state.memory)
        return (int(memory[address % MEMORY_SIZE]) << 8) | int(memory[(address + 1) % MEMORY_SIZE])

    def _check_fault(self, instruction: int):
        fault = int(self._state.fault)
        if fault != Fault.NONE:
            error = fault_error(fault, self.pc, instruction)
            self.logger.log_fault(error)
            raise error

    def step(self) -> int:
        """Run one fetch/execute/timer cycle and return the instruction word."""
        pc = self.pc
        self._state, instruction = step(self._state)
        instruction = int(instruction)
        self.logger.debug(f"0x{pc:03X} {instruction:04X} {disassemble(instruction)}")
        self._check_fault(instruction)
        return instruction

    def run(self, n: int, progress: bool = False):
        """Run up to ``n`` cycles, raising on the first fault.

        With ``progress`` a tqdm bar tracks the compiled loop.
        """
        if n <= 0:
            return
        start = time.time()
        if progress:
            self._state = _run_with_progress(self._state, n)
        else:
            self._state = run(self._state, n)
        elapsed = time.time() - start

        if int(self._state.fault) != Fault.NONE:
            self._check_fault(self._word_at(self.pc))
        self.logger.log_run_summary(n, elapsed, {
            "pc": f"0x{self.pc:03X}",
            "I": f"0x{self.index:03X}",
            "V": " ".join(f"{int(v):02X}" for v in self.registers),
        })

    def set_key(self, index: int, pressed: bool):
        """Press or release one key of the 16-key pad."""
        if not 0 <= index < NUM_KEYS:
            raise ValueError(f"Key index must be in 0..{NUM_KEYS - 1}, got {index}")
        self._state = self._state.replace(keypad=self._state.keypad.at[index].set(bool(pressed)))

    def framebuffer(self) -> np.ndarray:
        """Read-only (64, 32) boolean view of the display, indexed [x, y]."""
        frame = np.array(self._state.display, dtype=np.bool_)
        frame.setflags(write=False)
        return frame

    def delay_timer(self) -> int:
        return int(self._state.delay_timer)

    def sound_timer(self) -> int:
        return int(self._state.sound_timer)


@lru_cache(maxsize=None)
def _progress_runner(n: int):
    """Compiled ``n``-step scan with a progress bar, built once per ``n``."""
    @scan_with_progress(n)
    def body(carry, _):
        carry, instruction = step(carry)
        return carry, instruction

    @jax.jit
    def scan(state):
        state, _ = jax.lax.scan(body, state, jnp.arange(n))
        return state

    return scan


def _run_with_progress(state: EmulatorState, n: int) -> EmulatorState:
    return _progress_runner(n)(state)
