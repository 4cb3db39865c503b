"""BLAST database builder and NCBI taxonomy LCA library."""

__version__ = "1.0.0"

# Re-export key modules for convenient access
from py_blastdb import blastdb, config, models, taxid_lists, taxonomy

__all__ = [
    "__version__",
    "blastdb",
    "config",
    "models",
    "taxid_lists",
    "taxonomy",
]
