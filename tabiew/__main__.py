"""``python -m tabiew`` runs the same entry point as the ``tabiew`` script."""

from .cli import main

if __name__ == "__main__":
    main()
