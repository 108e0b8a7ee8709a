"""
Presence checks for the Bioconductor packages behind ``twofactor_de.edger``
and ``twofactor_de.limma``.

Both subpackages call :func:`ensure_r_dependencies` when first imported, so a
missing edgeR or limma is reported (or installed) before the pipeline starts
rather than halfway through a run.
"""

from __future__ import annotations
from typing import Sequence

# packages already confirmed in this process
_checked_packages: set = set()


def missing_r_packages(packages: Sequence[str]) -> list:
    """
    Return the R packages from ``packages`` that are not installed.

    Raises:
        ImportError: If rpy2 is not installed.
    """
    try:
        import rpy2.robjects.packages as rpackages
    except ImportError as err:
        raise ImportError(
            "twofactor_de needs rpy2 and an R installation for edgeR/limma; "
            "install rpy2 with 'pip install rpy2'"
        ) from err
    return [pkg for pkg in packages if not rpackages.isinstalled(pkg)]


def _install_bioconductor(packages: Sequence[str]) -> None:
    import rpy2.robjects.packages as rpackages
    from rpy2.robjects.vectors import StrVector

    utils = rpackages.importr("utils")
    utils.chooseCRANmirror(ind=1)
    if not rpackages.isinstalled("BiocManager"):
        utils.install_packages(StrVector(["BiocManager"]))
    rpackages.importr("BiocManager").install(StrVector(list(packages)), ask=False)


def ensure_r_dependencies(packages: Sequence[str]) -> None:
    """
    Make sure the given Bioconductor packages (``"edgeR"``, ``"limma"``) can
    be loaded, installing missing ones through BiocManager.

    Each package is checked once per process.

    Raises:
        RuntimeError: If a package is still missing after installation.
    """
    pending = [pkg for pkg in packages if pkg not in _checked_packages]
    if not pending:
        return

    missing = missing_r_packages(pending)
    if missing:
        print(f"R packages not found: {', '.join(missing)}; installing from Bioconductor...")
        _install_bioconductor(missing)
        still_missing = missing_r_packages(missing)
        if still_missing:
            raise RuntimeError(
                f"Could not install R packages {', '.join(still_missing)}; "
                "install them in R with BiocManager::install()"
            )
        print(f"Installed R packages: {', '.join(missing)}")

    _checked_packages.update(pending)
