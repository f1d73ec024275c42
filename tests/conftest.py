"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from chipvm import create_state, Machine
from chipvm.logging import EmulatorLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def machine():
    """Provide a seeded machine with a quiet logger."""
    return Machine(seed=0, logger=EmulatorLogger(log_level="CRITICAL", use_colors=False))


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*words):
    """Assemble 16-bit instruction words into a big-endian program image."""
    return b"".join(word.to_bytes(2, "big") for word in words)
