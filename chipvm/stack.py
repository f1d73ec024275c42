"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chipvm.constants import ADDRESS_MASK, STACK_SIZE
from chipvm.state import StackState


def is_full(stack: StackState) -> jnp.ndarray:
    return stack.pointer >= STACK_SIZE


def is_empty(stack: StackState) -> jnp.ndarray:
    return stack.pointer <= 0


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push address onto stack. A full stack is left untouched."""
    full = is_full(stack)
    slot = jnp.minimum(stack.pointer, STACK_SIZE - 1)
    masked_address = jnp.astype(address & ADDRESS_MASK, jnp.uint16)
    new_data = jnp.where(full, stack.data, stack.data.at[slot].set(masked_address))
    new_pointer = jnp.where(full, stack.pointer, stack.pointer + 1)
    return stack.replace(data=new_data, pointer=new_pointer)


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack. An empty stack yields address 0 and is left untouched."""
    empty = is_empty(stack)
    new_pointer = jnp.where(empty, stack.pointer, stack.pointer - 1)
    slot = jnp.maximum(new_pointer, 0)
    popped_address = jnp.where(empty, jnp.zeros((), dtype=jnp.uint16), stack.data[slot])
    new_data = jnp.where(empty, stack.data, stack.data.at[slot].set(0))
    return stack.replace(data=new_data, pointer=new_pointer), popped_address
