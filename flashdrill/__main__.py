"""
Entry point for running flashdrill as a module.

Usage:
    python -m flashdrill study
    python -m flashdrill lessons
    python -m flashdrill --help
"""
from .delivery.cli import main

if __name__ == "__main__":
    main()
