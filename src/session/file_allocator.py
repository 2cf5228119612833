"""
Sequential output file naming
"""

import os
from typing import Callable


def allocate_output_path(
    directory: str,
    base_name: str,
    extension: str,
    exists: Callable[[str], bool] = os.path.exists,
) -> str:
    """
    First free path among base.ext, base1.ext, base2.ext, ...

    Not safe under concurrent calls for the same directory: the caller must
    serialize allocate-then-create. StreamSession does this by only allocating
    while it holds the single-session guard.
    """
    candidate = os.path.join(directory, f"{base_name}.{extension}")
    counter = 1
    while exists(candidate):
        candidate = os.path.join(directory, f"{base_name}{counter}.{extension}")
        counter += 1
    return candidate
