"""
Entry point for running tethercam as a module.

This allows running the package with: python -m tethercam
"""

from .cli import main

if __name__ == '__main__':
    main()
