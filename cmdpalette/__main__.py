"""Module entrypoint for ``python -m cmdpalette``.

All argument parsing and terminal setup happen in ``cmdpalette.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
