from typing import Any
from ..r_env import get_r_environment


def _limma() -> Any:
    """Lazily import and return the R `limma` package via rpy2.

    Notes:
        The package handle is cached by the shared R environment.
    """
    return get_r_environment().package("limma")
