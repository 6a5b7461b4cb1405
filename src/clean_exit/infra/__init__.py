"""Infrastructure layer — filesystem and interpreter integration.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Exceptions raised by user scripts pass through untouched.
"""

from clean_exit.infra.script_runner import (
    CompiledScript,
    execute_script,
    load_script,
    read_script,
)

__all__: list[str] = [
    "CompiledScript",
    "execute_script",
    "load_script",
    "read_script",
]
