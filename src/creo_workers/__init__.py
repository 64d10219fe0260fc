"""creo-workers - Git clone-based workspace manager.

Creates isolated working copies ("workers") of the repository enclosing the
current directory, each on its own branch, with configured files symlinked
or copied in from the original checkout.

Package entry point. Exports the version string only; the CLI lives in
main.py.
"""

__version__ = "0.1.0"
