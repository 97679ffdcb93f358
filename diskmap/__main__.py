"""Module entrypoint for ``python -m diskmap``.

All argument parsing and scan setup happen in ``diskmap.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
