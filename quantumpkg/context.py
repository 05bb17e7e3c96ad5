"""
State handed from the ``quantum`` group to its subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from quantumpkg.config import QuantumConfig


class QuantumContext:
    """Options given to the ``quantum`` group, plus the settings they loaded.

    ``verbose`` counts ``-v`` flags; ``config_path`` is the settings file
    actually read, or ``None`` when only defaults apply.
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(
        self,
        *,
        config_path: Optional[Path] = None,
        verbose: int = 0,
        color: bool = True,
        config: Optional[QuantumConfig] = None,
    ) -> None:
        self.config_path = config_path
        self.verbose = verbose
        self.color = color
        self.config = config if config is not None else QuantumConfig()


#: Injects the :class:`QuantumContext`, creating a default one for commands run standalone.
pass_context = click.make_pass_decorator(QuantumContext, ensure=True)
